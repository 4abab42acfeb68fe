from orderdesk.core.config import build_database_url, load_database_settings


def test_url_is_assembled_from_parts_without_escaping_issues():
    url = build_database_url(
        {
            "DB_DRIVER": "postgresql+psycopg2",
            "DB_HOST": "db.internal",
            "DB_PORT": "6543",
            "DB_USER": "orders",
            "DB_PASSWORD": "p@ss:word/1",
            "DB_NAME": "shop",
        }
    )

    assert url.drivername == "postgresql+psycopg2"
    assert url.host == "db.internal"
    assert url.port == 6543
    assert url.username == "orders"
    assert url.password == "p@ss:word/1"
    assert url.database == "shop"
    assert "p@ss:word/1" not in url.render_as_string(hide_password=True)


def test_database_url_takes_precedence_over_parts():
    url = build_database_url({"DATABASE_URL": "sqlite:///orders.db", "DB_HOST": "ignored"})

    assert url.get_backend_name() == "sqlite"
    assert url.database == "orders.db"


def test_defaults_apply_to_empty_environment():
    settings = load_database_settings({})

    assert settings.url.drivername == "postgresql+psycopg2"
    assert settings.url.host == "localhost"
    assert settings.url.port is None
    assert settings.url.database == "orderdesk"
    assert settings.connect_timeout == 10
    assert settings.statement_timeout_ms == 30000
    assert settings.pool_pre_ping is True
    assert settings.echo is False
    assert settings.is_sqlite is False


def test_invalid_numbers_fall_back_to_defaults():
    settings = load_database_settings(
        {"DB_CONNECT_TIMEOUT": "soon", "DB_STATEMENT_TIMEOUT_MS": "-5", "DB_PORT": "abc"}
    )

    assert settings.connect_timeout == 10
    assert settings.statement_timeout_ms == 30000
    assert settings.url.port is None


def test_flags_and_timeouts_are_read():
    settings = load_database_settings(
        {
            "DATABASE_URL": "sqlite:///:memory:",
            "DB_CONNECT_TIMEOUT": "3",
            "DB_STATEMENT_TIMEOUT_MS": "1500",
            "DB_POOL_PRE_PING": "off",
            "DB_ECHO": "yes",
        }
    )

    assert settings.is_sqlite
    assert settings.connect_timeout == 3
    assert settings.statement_timeout_ms == 1500
    assert settings.pool_pre_ping is False
    assert settings.echo is True
