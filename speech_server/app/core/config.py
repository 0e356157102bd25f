import logging
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

log = logging.getLogger(__name__)


class MysqlConfig(BaseModel):
    """
    Connection parameters for the MySQL database.

    Attributes:
        host (str): Database server host name.
        port (int): Database server port.
        database (str): Name of the database (schema) to use.
        username (str): Database user.
        password (str): Password for the database user.

    """

    model_config = ConfigDict(frozen=True)

    host: str = ""
    port: int = 3306
    database: str = ""
    username: str = ""
    password: str = ""

    @property
    def url(self) -> URL:
        """
        Assembled SQLAlchemy URL using the PyMySQL driver.

        Returns:
            URL: The connection URL for the configured database.

        Notes:
            1. The driver is set to "mysql+pymysql".
            2. Empty components are left out of the URL.
            3. The URL is not validated here; presence is checked at startup.

        """
        return URL.create(
            drivername="mysql+pymysql",
            username=self.username or None,
            password=self.password or None,
            host=self.host or None,
            port=self.port,
            database=self.database or None,
        )


class SessionConfig(BaseModel):
    """
    Session cookie signing configuration.

    Attributes:
        session_key (str): Key used to sign new session cookies.
        previous_session_keys (tuple[str, ...]): Retired keys still accepted when
            verifying cookies issued before a key rotation.

    """

    model_config = ConfigDict(frozen=True)

    session_key: str = ""
    previous_session_keys: tuple[str, ...] = ()

    @property
    def keys(self) -> list[str]:
        """Signing keys, newest first."""
        return [k for k in (self.session_key, *self.previous_session_keys) if k]


class SiteDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = "Spee.ch"
    host: str = "http://localhost:3000"


class SiteConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    details: SiteDetails = Field(default_factory=SiteDetails)
    session: SessionConfig = Field(default_factory=SessionConfig)
    trust_proxy: bool = True


class LbrynetConfig(BaseModel):
    """Location of the content-network daemon."""

    model_config = ConfigDict(frozen=True)

    api_host: str = ""
    api_port: int = 5279

    @property
    def endpoint(self) -> str:
        return f"http://{self.api_host}:{self.api_port}"


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_level: str = "info"


class ServerConfiguration(BaseModel):
    """
    Immutable input to server composition.

    Attributes:
        mysql (MysqlConfig): Database connection parameters.
        site_config (SiteConfig): Site details, session signing keys and proxy trust.
        lbrynet_config (LbrynetConfig): Content-network daemon endpoint.
        logging (LoggingConfig): Log verbosity.

    """

    model_config = ConfigDict(frozen=True)

    mysql: MysqlConfig = Field(default_factory=MysqlConfig)
    site_config: SiteConfig = Field(default_factory=SiteConfig)
    lbrynet_config: LbrynetConfig = Field(default_factory=LbrynetConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Values that the server cannot run without default to empty strings, so
    that the configuration check reports every missing variable at once
    instead of failing on the first one.

    Attributes:
        mysql_host (str): Database host.
        mysql_port (int): Database port.
        mysql_database (str): Database name.
        mysql_username (str): Database user.
        mysql_password (str): Database password.
        session_key (str): Key used to sign session cookies.
        previous_session_keys (str): Comma separated list of retired signing keys.
        site_title (str): Title shown in page templates.
        site_host (str): Public URL of the site.
        trust_proxy (bool): Whether to take the client IP from X-Forwarded-For.
        lbrynet_api_host (str): Host of the content-network daemon.
        lbrynet_api_port (int): Port of the content-network daemon.
        log_level (str): Winston-style log level name.

    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # Database settings
    mysql_host: str = Field(default="localhost", validation_alias="MYSQL_HOST")
    mysql_port: int = Field(default=3306, validation_alias="MYSQL_PORT")
    mysql_database: str = Field(default="", validation_alias="MYSQL_DATABASE")
    mysql_username: str = Field(default="", validation_alias="MYSQL_USERNAME")
    mysql_password: str = Field(default="", validation_alias="MYSQL_PASSWORD")

    # Session settings
    session_key: str = Field(default="", validation_alias="SESSION_KEY")
    previous_session_keys: str = Field(
        default="",
        validation_alias="PREVIOUS_SESSION_KEYS",
    )

    # Site settings
    site_title: str = Field(default="Spee.ch", validation_alias="SITE_TITLE")
    site_host: str = Field(
        default="http://localhost:3000",
        validation_alias="SITE_HOST",
    )
    trust_proxy: bool = Field(default=True, validation_alias="TRUST_PROXY")

    # Content network
    lbrynet_api_host: str = Field(default="", validation_alias="LBRYNET_API_HOST")
    lbrynet_api_port: int = Field(default=5279, validation_alias="LBRYNET_API_PORT")

    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    def to_server_configuration(self) -> ServerConfiguration:
        """
        Build the immutable server configuration from these settings.

        Returns:
            ServerConfiguration: The configuration passed to server composition.

        Notes:
            1. Split PREVIOUS_SESSION_KEYS on commas, dropping blanks.
            2. Group the flat settings into the nested configuration sections.
            3. No disk, network, or database access.

        """
        previous_keys = tuple(
            key.strip() for key in self.previous_session_keys.split(",") if key.strip()
        )
        return ServerConfiguration(
            mysql=MysqlConfig(
                host=self.mysql_host,
                port=self.mysql_port,
                database=self.mysql_database,
                username=self.mysql_username,
                password=self.mysql_password,
            ),
            site_config=SiteConfig(
                details=SiteDetails(title=self.site_title, host=self.site_host),
                session=SessionConfig(
                    session_key=self.session_key,
                    previous_session_keys=previous_keys,
                ),
                trust_proxy=self.trust_proxy,
            ),
            lbrynet_config=LbrynetConfig(
                api_host=self.lbrynet_api_host,
                api_port=self.lbrynet_api_port,
            ),
            logging=LoggingConfig(log_level=self.log_level),
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings: The cached settings, read from the environment and the .env file.

    Notes:
        1. The instance is cached to avoid re-reading the .env file.
        2. This function performs disk access to read the .env file.

    """
    return Settings()
