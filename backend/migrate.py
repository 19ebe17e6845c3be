#!/usr/bin/env python3
"""
Standalone database migration script for the control plane database.

Run BEFORE the server starts. Handles fresh installs, release upgrades and
idempotent restarts.

Workflow:
1. Detect: Fresh install, pre-alembic 2.5.1 database, or alembic-managed database
2. Fresh install: Create tables + stamp as HEAD (no migrations run)
3. Pre-alembic 2.5.1: Stamp the 2.5.1 baseline, then upgrade
4. Existing: Run pending migrations + validate schema
5. Idempotent: Restarts detect "already at latest" instantly

Exit codes:
    0: Migrations completed successfully
    1: Migration failed
"""

import sys
import os
import logging
import shutil
from typing import Optional

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.orm import Session

from config.settings import UpgradeConfig, setup_logging
from database import Base, MetainfoEntity
from utils.version import get_app_version

logger = logging.getLogger('migrate')

BASELINE_REVISION = '001_v2_5_1'

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
ALEMBIC_DIR = os.path.join(BACKEND_DIR, "alembic")
ALEMBIC_INI = os.path.join(BACKEND_DIR, "alembic.ini")


def _alembic_version_table_exists(engine) -> bool:
    """
    Check if alembic_version table exists.

    Returns:
        True if table exists (database is managed by alembic)
        False if table doesn't exist (fresh install or pre-alembic database)
    """
    inspector = inspect(engine)
    return 'alembic_version' in inspector.get_table_names()


def _is_legacy_database(engine) -> bool:
    """
    Check if this is a 2.5.1 database created before alembic took over.

    Legacy databases have a clusters table but no alembic_version table.
    Fresh installs have no tables at all.
    """
    inspector = inspect(engine)
    is_legacy = 'clusters' in inspector.get_table_names()
    if is_legacy:
        logger.info("Detected pre-alembic 2.5.1 database")
    return is_legacy


def _get_current_version(engine) -> Optional[str]:
    """
    Get current database revision from alembic_version table.

    Returns:
        Current revision ID (e.g., '001_v2_5_1') or None if not found
    """
    with engine.connect() as conn:
        result = conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
        return result.scalar()


def _get_head_revision(alembic_cfg) -> str:
    """Get the HEAD (latest) revision from the alembic migration files"""
    from alembic.script import ScriptDirectory
    script = ScriptDirectory.from_config(alembic_cfg)
    return script.get_current_head()


def _log_migration_plan(alembic_cfg, current: Optional[str], target: str):
    """Show which migrations will be applied"""
    from alembic.script import ScriptDirectory

    script = ScriptDirectory.from_config(alembic_cfg)

    # iterate_revisions walks DOWN from upper to lower, so we pass target first
    try:
        revisions = list(script.iterate_revisions(target, current))
    except Exception as e:
        logger.warning(f"Could not determine migration plan: {e}")
        return

    if revisions:
        logger.info(f"Migration plan ({len(revisions)} step(s)):")
        for rev in reversed(revisions):
            # '002_v2_5_2' -> 'v2.5.2'
            if '_' in rev.revision:
                version = rev.revision.split('_', 1)[1].replace('_', '.')
            else:
                version = rev.revision

            doc = rev.doc.split('\n')[0] if rev.doc else 'No description'
            logger.info(f"   -> {version}: {doc}")


def _validate_schema(engine, version: str):
    """
    Validate expected schema exists for given revision.

    Raises:
        RuntimeError: If expected schema is missing
    """
    inspector = inspect(engine)

    # Add new rules here when creating new migrations
    validations = {
        '001_v2_5_1': {
            'tables': ['clusters', 'clusterconfig', 'stack_properties', 'artifact', 'metainfo'],
        },
        '002_v2_5_2': {
            'tables': ['clusters', 'clusterconfig', 'stack_properties', 'artifact', 'metainfo'],
            'clusterconfig_columns': ['service_deleted'],
        },
    }

    if version in validations:
        rules = validations[version]

        if 'tables' in rules:
            existing_tables = set(inspector.get_table_names())
            missing = set(rules['tables']) - existing_tables
            if missing:
                raise RuntimeError(f"Schema validation failed: Missing tables: {missing}")

        # Format: {table_name}_columns: [col1, col2, ...]
        for key, required_cols in rules.items():
            if key.endswith('_columns'):
                table_name = key[:-len('_columns')]

                if table_name not in inspector.get_table_names():
                    raise RuntimeError(f"Schema validation failed: Table '{table_name}' does not exist")

                existing_cols = {col['name'] for col in inspector.get_columns(table_name)}
                missing = set(required_cols) - existing_cols
                if missing:
                    raise RuntimeError(f"Schema validation failed: Missing columns in {table_name}: {missing}")

    logger.info(f"Schema validation passed for version: {version}")


def _sync_server_version(engine):
    """Sync metainfo 'version' with the VERSION file"""
    app_version = get_app_version()
    if app_version == 'dev':
        return

    with Session(engine) as session:
        entry = session.get(MetainfoEntity, 'version')
        if entry is None:
            session.add(MetainfoEntity(metainfo_key='version', metainfo_value=app_version))
        elif entry.metainfo_value == app_version:
            return
        else:
            entry.metainfo_value = app_version
        session.commit()
        logger.info(f"Updated server version to {app_version}")


def _backup(db_path: str, backup_path: str) -> bool:
    if not UpgradeConfig.BACKUP_ENABLED:
        logger.info("Backup disabled (CLUSTER_UPGRADE_BACKUP=false)")
        return True

    logger.info(f"Creating backup: {backup_path}")
    try:
        shutil.copy2(db_path, backup_path)
        logger.info("Backup created")
        return True
    except Exception as e:
        logger.error(f"Backup creation failed: {e}")
        logger.error("Aborting migration - cannot proceed without backup")
        return False


def _remove_backup(backup_path: str):
    if not UpgradeConfig.BACKUP_ENABLED:
        return
    try:
        os.remove(backup_path)
        logger.info("Backup removed (migration successful)")
    except Exception as e:
        logger.warning(f"Could not remove backup: {e}")
        logger.info(f"Manual cleanup: rm {backup_path}")


def _handle_fresh_install(engine, alembic_cfg) -> bool:
    """
    Handle fresh installation: Create tables with latest schema, stamp as HEAD.

    Returns:
        True on success, False on failure
    """
    from alembic import command

    logger.info("Fresh installation detected")

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created")

        head_revision = _get_head_revision(alembic_cfg)

        _sync_server_version(engine)

        logger.info(f"Stamping database at version: {head_revision}")
        command.stamp(alembic_cfg, head_revision)
        logger.info(f"Database initialized at version: {head_revision}")

        _validate_schema(engine, head_revision)
        return True

    except Exception as e:
        logger.error(f"Fresh installation failed: {e}", exc_info=True)
        return False


def _handle_upgrade(engine, alembic_cfg, db_path: str) -> bool:
    """
    Handle existing database: Check version and run pending migrations.

    Upgrade path:
    1. Compare current vs HEAD
    2. If already at HEAD, skip (idempotent)
    3. Otherwise: backup -> migrate -> verify -> validate -> cleanup

    Returns:
        True on success, False on failure
    """
    from alembic import command

    try:
        current_version = _get_current_version(engine)
        head_version = _get_head_revision(alembic_cfg)

        logger.info(f"Database version: {current_version}")
        logger.info(f"Target version: {head_version}")

        if current_version == head_version:
            logger.info("Already at latest version")
            _sync_server_version(engine)
            return True

        _log_migration_plan(alembic_cfg, current_version, head_version)

        backup_path = f"{db_path}.backup-{current_version}-to-{head_version}"
        if not _backup(db_path, backup_path):
            return False

        logger.info("Applying migrations...")
        try:
            command.upgrade(alembic_cfg, "head")

            # Catches silent rollbacks
            final_version = _get_current_version(engine)
            if final_version != head_version:
                raise RuntimeError(
                    f"Migration appeared to succeed but version not updated! "
                    f"Expected {head_version}, got {final_version}."
                )

            _validate_schema(engine, head_version)
            _sync_server_version(engine)
            _remove_backup(backup_path)

            logger.info("Migrations completed successfully")
            return True

        except Exception as e:
            logger.error(f"Migration failed: {e}", exc_info=True)
            if UpgradeConfig.BACKUP_ENABLED:
                logger.error(f"Backup preserved at: {backup_path}")
                logger.error(f"To restore: cp {backup_path} {db_path}")
            return False

    except Exception as e:
        logger.error(f"Upgrade process failed: {e}", exc_info=True)
        return False


def _handle_legacy_upgrade(engine, alembic_cfg, db_path: str) -> bool:
    """Stamp a pre-alembic 2.5.1 database at the baseline, then upgrade it"""
    from alembic import command

    try:
        logger.info(f"Stamping legacy database at baseline: {BASELINE_REVISION}")
        command.stamp(alembic_cfg, BASELINE_REVISION)
    except Exception as e:
        logger.error(f"Could not stamp legacy database: {e}", exc_info=True)
        return False

    return _handle_upgrade(engine, alembic_cfg, db_path)


def get_alembic_config(database_url: str):
    """Alembic configuration pointing at this backend's revision scripts"""
    from alembic.config import Config

    alembic_cfg = Config(ALEMBIC_INI)
    alembic_cfg.set_main_option("script_location", ALEMBIC_DIR)
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    alembic_cfg.attributes['configure_logger'] = False
    return alembic_cfg


def run_migrations(db_path: Optional[str] = None) -> bool:
    """
    Run database migrations to upgrade schema to latest version.

    Args:
        db_path: SQLite database file (defaults to CLUSTER_UPGRADE_DATABASE_PATH)

    Returns:
        bool: True if successful, False otherwise
    """
    try:
        db_path = db_path or UpgradeConfig.DATABASE_PATH
        database_url = UpgradeConfig.database_url(db_path)

        data_dir = os.path.dirname(db_path)
        if data_dir:
            os.makedirs(data_dir, exist_ok=True)
        logger.info(f"Data directory: {data_dir}")

        if not os.path.exists(ALEMBIC_DIR):
            logger.error(f"Alembic directory not found at {ALEMBIC_DIR}")
            return False

        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": UpgradeConfig.DB_TIMEOUT}
        )
        logger.info(f"Connected to database: {db_path}")

        alembic_cfg = get_alembic_config(database_url)

        try:
            if not _alembic_version_table_exists(engine):
                if _is_legacy_database(engine):
                    return _handle_legacy_upgrade(engine, alembic_cfg, db_path)
                return _handle_fresh_install(engine, alembic_cfg)
            return _handle_upgrade(engine, alembic_cfg, db_path)
        finally:
            engine.dispose()

    except ImportError as e:
        logger.error(f"Import error: {e}")
        logger.error("Ensure all required packages are installed")
        return False
    except Exception as e:
        logger.error(f"Migration error: {e}", exc_info=True)
        return False


def main():
    """Main entry point"""
    setup_logging()

    logger.info("=" * 60)
    logger.info(f"Control plane database migration (release {get_app_version()})")
    logger.info("=" * 60)

    success = run_migrations()

    if success:
        logger.info("Migration completed successfully")
        sys.exit(0)
    else:
        logger.error("Migration failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
