"""
Validate requested line items against a catalog snapshot.

Rules, checked in this order for each line:
  1. the menu item must be in the snapshot (active)         -> InvalidMenuItem
  2. every selected option must hang off one of the item's
     active mapped groups                                   -> InvalidOption
  3. a "single" group takes at most one selection           -> TooManySelections
  4. a required group takes at least one selection          -> MissingRequiredGroup

Repeated option ids within a line count as one selection.
"""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from boba_shop.errors import InvalidMenuItem, InvalidOption, MissingRequiredGroup, TooManySelections
from boba_shop.models.catalog import SelectionType
from boba_shop.services.catalog import CatalogItem


class LineRequest(Protocol):
    menu_item_id: int
    quantity: int
    selected_option_ids: list[int]


@dataclass(frozen=True)
class SelectedOption:
    option_id: int
    group_id: int
    group_name: str
    label: str
    price_delta: Decimal


@dataclass(frozen=True)
class ValidatedLine:
    item: CatalogItem
    quantity: int
    options: tuple[SelectedOption, ...]


def _dedupe(ids: Sequence[int]) -> list[int]:
    return list(dict.fromkeys(ids))


def _option_lookup(item: CatalogItem) -> dict[int, SelectedOption]:
    return {
        option.id: SelectedOption(
            option_id=option.id,
            group_id=group.id,
            group_name=group.name,
            label=option.label,
            price_delta=option.price_delta,
        )
        for group in item.groups
        for option in group.options
    }


def _check_cardinality(item: CatalogItem, counts: Counter) -> None:
    for group in item.groups:
        if group.selection_type == SelectionType.SINGLE and counts[group.id] > 1:
            raise TooManySelections(
                f'Only one option allowed for group "{group.name}" on item {item.id}',
                menu_item_id=item.id,
                group=group.name,
            )

    for group in item.groups:
        if group.is_required and counts[group.id] < 1:
            raise MissingRequiredGroup(
                f'Missing required option for group "{group.name}" on item {item.id}',
                menu_item_id=item.id,
                group=group.name,
            )


def validate_line(snapshot: dict[int, CatalogItem], line: LineRequest) -> ValidatedLine:
    item = snapshot.get(line.menu_item_id)
    if item is None:
        raise InvalidMenuItem(
            f"Invalid or inactive menu item: {line.menu_item_id}",
            menu_item_id=line.menu_item_id,
        )

    lookup = _option_lookup(item)
    selected: list[SelectedOption] = []
    for option_id in _dedupe(line.selected_option_ids):
        found = lookup.get(option_id)
        if found is None:
            raise InvalidOption(
                f"Invalid option {option_id} for menu item {item.id}",
                menu_item_id=item.id,
                option_id=option_id,
            )
        selected.append(found)

    _check_cardinality(item, Counter(o.group_id for o in selected))
    return ValidatedLine(item=item, quantity=line.quantity, options=tuple(selected))


def validate_selections(
    snapshot: dict[int, CatalogItem], lines: Sequence[LineRequest]
) -> list[ValidatedLine]:
    return [validate_line(snapshot, line) for line in lines]