from __future__ import annotations

from alembic import op

from orderdesk.core.database import Base
import orderdesk.models  # noqa: F401

revision = "0001_create_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # customer, deliveryman, item, orders, order_item
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
