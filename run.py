import uvicorn
import os


def run_migrations():
    """Run Alembic migrations."""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_cfg = Config("alembic.ini")
        print("[STARTUP] Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        print("[STARTUP] Migrations complete!")
        return True
    except Exception as e:
        print(f"[WARN] Migration failed: {e}")
        return False


def init_database():
    """Create tables directly from the models (fallback)."""
    from fieldcrm.database import init_db
    print("[STARTUP] Initializing database tables...")
    init_db()
    print("[STARTUP] Database initialization complete!")


if __name__ == "__main__":
    if os.getenv("RUN_MIGRATIONS") == "true" and not run_migrations():
        print("[WARN] Falling back to direct table creation...")
        init_database()

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload = os.getenv("ENV") == "development"

    print(f"[STARTUP] Server binding to host={host} port={port}")
    uvicorn.run(
        "fieldcrm.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        workers=1,
    )
