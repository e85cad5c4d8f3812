from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/boba"
    log_level: str = "INFO"

    # Order numbers look like BB-2026-000042
    order_number_prefix: str = "BB"
    order_number_width: int = 6

    # When true, checkout must carry a payment claim and orders start in
    # PENDING_VERIFICATION instead of NEW.
    require_payment_claim: bool = False

    # Shop's WhatsApp number; empty falls back to the customer's phone
    whatsapp_phone: str = ""

    admin_token: str = "change-me"
    seed_demo_menu: bool = True

    # Kafka
    kafka_enabled: bool = False
    kafka_bootstrap_servers: str = "kafka:9092"
    kafka_order_topic: str = "order.placed"

    # Observability
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://jaeger:4318/v1/traces"

    model_config = {"env_file": ".env"}


settings = Settings()
