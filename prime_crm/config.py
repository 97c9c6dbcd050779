"""Configuration management for prime-crm."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from prime_crm.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "json", "postgres")
SENDER_KINDS = ("console", "outbox", "kafka")
LOG_FORMATS = ("standard", "json")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3
    topic_prefix: str = "dev.crm"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "primecrm"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class StoreConfig:
    """Persistence backend selection."""

    backend: str = "memory"
    data_dir: Path = field(default_factory=lambda: Path("data/processes"))

    def __post_init__(self) -> None:
        if self.backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.backend!r}; expected one of {', '.join(STORE_BACKENDS)}"
            )


@dataclass
class NotificationConfig:
    """Outbound message configuration."""

    sender: str = "console"
    outbox_dir: Path = field(default_factory=lambda: Path("data/outbox"))
    from_email: str = "noreply@primehabitacao.com.br"
    from_name: str = "Prime Habitação"
    sms_from_number: str = "+5511999999999"
    portal_url: str = "https://crm-prime.vercel.app"

    def __post_init__(self) -> None:
        if self.sender not in SENDER_KINDS:
            raise ConfigurationError(
                f"Unknown notification sender {self.sender!r}; expected one of {', '.join(SENDER_KINDS)}"
            )


@dataclass
class CrmConfig:
    """Main configuration for prime-crm."""

    store: StoreConfig = field(default_factory=StoreConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format {self.log_format!r}")

    @classmethod
    def from_env(cls) -> "CrmConfig":
        """Create config from environment variables."""
        import os

        try:
            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=int(os.getenv("POSTGRES_PORT", "5432")),
                database=os.getenv("POSTGRES_DB", "primecrm"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            )
            seed = int(os.getenv("SEED")) if os.getenv("SEED") else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.crm"),
        )

        store = StoreConfig(
            backend=os.getenv("CRM_STORE_BACKEND", "memory"),
            data_dir=Path(os.getenv("CRM_DATA_DIR", "data/processes")),
        )

        defaults = NotificationConfig()
        notifications = NotificationConfig(
            sender=os.getenv("CRM_NOTIFICATION_SENDER", defaults.sender),
            outbox_dir=Path(os.getenv("CRM_OUTBOX_DIR", str(defaults.outbox_dir))),
            from_email=os.getenv("CRM_FROM_EMAIL", defaults.from_email),
            from_name=os.getenv("CRM_FROM_NAME", defaults.from_name),
            sms_from_number=os.getenv("CRM_SMS_FROM", defaults.sms_from_number),
            portal_url=os.getenv("CRM_PORTAL_URL", defaults.portal_url),
        )

        return cls(
            store=store,
            postgres=postgres,
            kafka=kafka,
            notifications=notifications,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            seed=seed,
        )
