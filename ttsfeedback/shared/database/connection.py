"""Database connection manager with pooling and health checks.

Manages PostgreSQL connections with:
- Thread-safe connection pooling
- Health checks for readiness endpoints
- Secrets Manager integration for credentials
"""
import json
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Optional

from psycopg2 import pool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Credentials come from environment variables, or from AWS Secrets
    Manager for hosted deployments.
    """
    host: str
    port: int = 5432
    database: str = "tts_feedback"
    username: str = ""
    password: str = ""
    min_connections: int = 1
    max_connections: int = 5
    connect_timeout: int = 10
    ssl_mode: str = "prefer"

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create config from environment variables.

        Environment variables:
            DB_HOST: Database host
            DB_PORT: Database port (default 5432)
            DB_NAME: Database name (default tts_feedback)
            DB_USER: Database username
            DB_PASSWORD: Database password
            DB_MIN_CONN: Minimum pool connections (default 1)
            DB_MAX_CONN: Maximum pool connections (default 5)
            DB_SSL_MODE: SSL mode (default prefer)
        """
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "tts_feedback"),
            username=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            min_connections=int(os.getenv("DB_MIN_CONN", "1")),
            max_connections=int(os.getenv("DB_MAX_CONN", "5")),
            ssl_mode=os.getenv("DB_SSL_MODE", "prefer"),
        )

    @classmethod
    def from_secrets_manager(cls, secret_arn: str, region: str = "us-east-1") -> "DatabaseConfig":
        """Load config from AWS Secrets Manager.

        Args:
            secret_arn: ARN of the secret containing credentials
            region: AWS region

        Returns:
            DatabaseConfig with credentials from Secrets Manager
        """
        import boto3

        try:
            client = boto3.client("secretsmanager", region_name=region)
            response = client.get_secret_value(SecretId=secret_arn)
            secret = json.loads(response["SecretString"])
        except Exception as e:
            logger.error(
                "SECRETS_MANAGER_LOAD_FAILED",
                extra={"error": str(e), "secret_arn": secret_arn}
            )
            raise

        return cls(
            host=secret.get("host", os.getenv("DB_HOST", "localhost")),
            port=int(secret.get("port", os.getenv("DB_PORT", "5432"))),
            database=secret.get("dbname", os.getenv("DB_NAME", "tts_feedback")),
            username=secret.get("username", ""),
            password=secret.get("password", ""),
        )


class ConnectionManager:
    """Manages database connections with pooling.

    Uses the psycopg2 threaded pool so concurrent Flask requests can
    share connections.
    """

    def __init__(self, config: DatabaseConfig):
        """Initialize connection manager.

        Args:
            config: Database configuration
        """
        self.config = config
        self._pool: Optional[pool.ThreadedConnectionPool] = None

        logger.info(
            "CONNECTION_MANAGER_CREATED",
            extra={
                "host": config.host,
                "database": config.database,
                "min_connections": config.min_connections,
                "max_connections": config.max_connections,
            }
        )

    @property
    def initialized(self) -> bool:
        return self._pool is not None

    def initialize(self) -> None:
        """Create the connection pool. Safe to call more than once."""
        if self._pool is not None:
            return

        try:
            self._pool = pool.ThreadedConnectionPool(
                minconn=self.config.min_connections,
                maxconn=self.config.max_connections,
                host=self.config.host,
                port=self.config.port,
                database=self.config.database,
                user=self.config.username,
                password=self.config.password,
                connect_timeout=self.config.connect_timeout,
                sslmode=self.config.ssl_mode,
            )
        except Exception as e:
            logger.error(
                "CONNECTION_POOL_INIT_FAILED",
                extra={"error": str(e), "host": self.config.host}
            )
            raise

        logger.info(
            "CONNECTION_POOL_INITIALIZED",
            extra={
                "host": self.config.host,
                "database": self.config.database,
            }
        )

    @contextmanager
    def get_connection(self):
        """Get a connection from the pool.

        Usage:
            with manager.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")

        Yields:
            Database connection
        """
        if self._pool is None:
            self.initialize()

        conn = self._pool.getconn()
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def health_check(self) -> Dict[str, Any]:
        """Check database connectivity.

        Returns:
            Dictionary with health status
        """
        if self._pool is None:
            return {
                "status": "not_initialized",
                "healthy": False,
            }

        try:
            with self.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
                    cur.fetchone()
        except Exception as e:
            logger.error(
                "DATABASE_HEALTH_CHECK_FAILED",
                extra={"error": str(e)}
            )
            return {
                "status": "error",
                "healthy": False,
                "error": str(e),
            }

        return {
            "status": "connected",
            "healthy": True,
            "host": self.config.host,
            "database": self.config.database,
        }

    def close(self) -> None:
        """Close all connections in the pool.

        Call this during application shutdown.
        """
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("CONNECTION_POOL_CLOSED")
