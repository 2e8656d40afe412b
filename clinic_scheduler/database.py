import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_scheduler.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_scheduler.db")

# SQLite connections are shared across FastAPI worker threads.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, echo=config.SQL_ECHO)


def configure_sqlite_locking(sqlite_engine) -> None:
    """Take the write lock when a transaction starts instead of on first write.

    Without this, two SQLite transactions that both read and then try to
    upgrade to a write lock fail with "database is locked" instead of
    queueing behind each other.
    """

    @event.listens_for(sqlite_engine, "connect")
    def disable_pysqlite_transactions(dbapi_connection, _):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


if DATABASE_URL.startswith("sqlite"):
    configure_sqlite_locking(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

ACTIVE_BOOKING_PREDICATE = "status NOT IN ({})".format(
    ", ".join(f"'{status}'" for status in config.INACTIVE_BOOKING_STATUSES)
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema() -> None:
    """Bring tables created by older deployments up to the current shape.

    Adds missing columns and the unique indexes that make slot population and
    reservation safe under concurrency. Runs once per process.
    """
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        inspector = inspect(engine)
        table_names = set(inspector.get_table_names())

        with engine.begin() as connection:
            if 'slots' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('slots')}
                migration_steps = [
                    ('end_time', 'ALTER TABLE slots ADD COLUMN end_time VARCHAR(5)'),
                    ('is_booked', 'ALTER TABLE slots ADD COLUMN is_booked BOOLEAN DEFAULT FALSE'),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_slots_provider_date_start '
                        'ON slots(provider_id, date, start_time)'
                    )
                )

            if 'appointments' in table_names:
                existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
                migration_steps = [
                    ('patient_id', 'ALTER TABLE appointments ADD COLUMN patient_id VARCHAR'),
                    ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR'),
                ]
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                        f'ON appointments(provider_id, date, time) WHERE {ACTIVE_BOOKING_PREDICATE}'
                    )
                )

            if 'weekly_templates' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_weekly_templates_provider_day '
                        'ON weekly_templates(provider_id, day_of_week)'
                    )
                )

            if 'date_exceptions' in table_names:
                connection.execute(
                    text(
                        'CREATE UNIQUE INDEX IF NOT EXISTS uq_date_exceptions_provider_date '
                        'ON date_exceptions(provider_id, date)'
                    )
                )

        _scheduling_schema_checked = True
