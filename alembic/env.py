from logging.config import fileConfig
from alembic import context
from sqlalchemy import engine_from_config, pool
import os
from formflow.db.session import Base

# import models
from formflow.models.form import Form
from formflow.models.form_field import FormField
from formflow.models.form_submission import FormSubmission
from formflow.models.form_field_response import FormFieldResponse
from formflow.models.folder import Folder
from formflow.models.invitation import Invitation

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata

def get_url():
    return os.getenv("DATABASE_URL")

def run_migrations_offline():
    context.configure(url=get_url(), target_metadata=target_metadata, literal_binds=True, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    cfg = config.get_section(config.config_ini_section)
    cfg["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
