"""initial schema: workers, job cards, attachments, on-site complaints, counters

Revision ID: 0001_initial_schema
Revises:
Create Date: 2024-11-04 10:12:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    counters = op.create_table(
        "counters",
        sa.Column("key", sa.String(length=100), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False),
    )

    op.create_table(
        "workers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("worker_name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=20), nullable=False),
        sa.Column("worker_image", sa.String(length=1024), nullable=True),
        sa.Column("storage_key", sa.String(length=512), nullable=True),
        sa.Column("status", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_workers_id", "workers", ["id"])
    op.create_index("ix_workers_worker_name", "workers", ["worker_name"])

    op.create_table(
        "job_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_card_number", sa.String(length=50), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_address", sa.Text(), nullable=False),
        sa.Column("phone_numbers", sa.JSON(), nullable=False),
        sa.Column("make", sa.String(length=255), nullable=True),
        sa.Column("hp", sa.Integer(), nullable=True),
        sa.Column("kva", sa.Integer(), nullable=True),
        sa.Column("rpm", sa.Integer(), nullable=True),
        sa.Column("motor_type", sa.String(length=255), nullable=True),
        sa.Column("frame", sa.String(length=255), nullable=True),
        sa.Column("sr_no", sa.String(length=255), nullable=False),
        sa.Column("dealer_name", sa.String(length=255), nullable=True),
        sa.Column("dealer_number", sa.String(length=50), nullable=True),
        sa.Column("warranty", sa.Boolean(), nullable=False),
        sa.Column("works", sa.Text(), nullable=True),
        sa.Column("spares", sa.Text(), nullable=True),
        sa.Column("industrial_works", sa.Text(), nullable=True),
        sa.Column("others", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("out_date", sa.DateTime(), nullable=True),
        sa.Column("invoice_number", sa.String(length=100), nullable=True),
        sa.Column("invoice_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("worker_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_job_cards_id", "job_cards", ["id"])
    op.create_index("ix_job_cards_job_card_number", "job_cards", ["job_card_number"], unique=True)
    op.create_index("ix_job_cards_customer_name", "job_cards", ["customer_name"])
    op.create_index("ix_job_cards_status", "job_cards", ["status"])

    op.create_table(
        "job_card_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_card_id", sa.Integer(), sa.ForeignKey("job_cards.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("storage_key", sa.String(length=512), nullable=False),
        sa.Column("file_type", sa.String(length=10), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_job_card_images_id", "job_card_images", ["id"])
    op.create_index("ix_job_card_images_job_card_id", "job_card_images", ["job_card_id"])

    op.create_table(
        "onsite_jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("complaint_number", sa.String(length=100), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_address", sa.Text(), nullable=False),
        sa.Column("phone_numbers", sa.JSON(), nullable=False),
        sa.Column("make", sa.String(length=255), nullable=True),
        sa.Column("dealer_name", sa.String(length=255), nullable=True),
        sa.Column("reported_complaint", sa.Text(), nullable=True),
        sa.Column("complaint_details", sa.Text(), nullable=True),
        sa.Column("attended_date", sa.DateTime(), nullable=True),
        sa.Column("warranty_status", sa.String(length=20), nullable=False),
        sa.Column("complaint_status", sa.String(length=20), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("attended_person_id", sa.Integer(), sa.ForeignKey("workers.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("ix_onsite_jobs_id", "onsite_jobs", ["id"])
    op.create_index("ix_onsite_jobs_complaint_number", "onsite_jobs", ["complaint_number"], unique=True)
    op.create_index("ix_onsite_jobs_customer_name", "onsite_jobs", ["customer_name"])
    op.create_index("ix_onsite_jobs_complaint_status", "onsite_jobs", ["complaint_status"])

    op.bulk_insert(counters, [{"key": "jobCardNumber", "value": 0}])


def downgrade():
    op.drop_table("onsite_jobs")
    op.drop_table("job_card_images")
    op.drop_table("job_cards")
    op.drop_table("workers")
    op.drop_table("counters")
