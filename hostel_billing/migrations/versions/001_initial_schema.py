"""Create billing schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2024-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

DUE_STATUS_VALUES = ('DUE', 'PARTIAL', 'PAID')

# PostgreSQL enum types created by this revision
ENUM_TYPES = ('userrole', 'duestatus', 'billtype', 'paymentmethod', 'paymenttype', 'duetype')


def _due_status(create_type=True):
    """duestatus column type; only the first table using it creates the PostgreSQL type."""
    return sa.Enum(*DUE_STATUS_VALUES, name='duestatus').with_variant(
        postgresql.ENUM(*DUE_STATUS_VALUES, name='duestatus', create_type=create_type),
        'postgresql',
    )


def _timestamps():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create billing tables."""
    op.create_table(
        'users',
        *_timestamps(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', sa.Enum('ADMIN', 'TENANT', name='userrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'hostels',
        *_timestamps(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'rooms',
        *_timestamps(),
        sa.Column('hostel_id', sa.Integer(), nullable=False),
        sa.Column('room_number', sa.String(50), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('rent_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['hostel_id'], ['hostels.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('hostel_id', 'room_number', name='uq_room_hostel_number'),
    )
    op.create_index('ix_rooms_hostel_id', 'rooms', ['hostel_id'])

    op.create_table(
        'tenancies',
        *_timestamps(),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('monthly_share', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('previous_balance', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('utility_charge_override', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tenancies_room_id', 'tenancies', ['room_id'])
    op.create_index('ix_tenancies_tenant_id', 'tenancies', ['tenant_id'])
    op.create_index('idx_tenancy_room_active', 'tenancies', ['room_id', 'is_active'])
    op.create_index('idx_tenancy_tenant_active', 'tenancies', ['tenant_id', 'is_active'])

    op.create_table(
        'rent_charges',
        *_timestamps(),
        sa.Column('tenancy_id', sa.Integer(), nullable=False),
        sa.Column('period', sa.String(7), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', _due_status(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('late_fee', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.ForeignKeyConstraint(['tenancy_id'], ['tenancies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenancy_id', 'period', name='uq_rent_charge_tenancy_period'),
    )
    op.create_index('ix_rent_charges_tenancy_id', 'rent_charges', ['tenancy_id'])
    op.create_index('idx_rent_charge_status', 'rent_charges', ['status'])

    op.create_table(
        'bills',
        *_timestamps(),
        sa.Column('tenancy_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('bill_type', sa.Enum('ELECTRICITY', 'WATER', 'MAINTENANCE', 'OTHER', name='billtype'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('status', _due_status(create_type=False), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.ForeignKeyConstraint(['tenancy_id'], ['tenancies.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_bills_tenancy_id', 'bills', ['tenancy_id'])
    op.create_index('idx_bill_tenancy_status', 'bills', ['tenancy_id', 'status'])

    op.create_table(
        'shared_utility_charges',
        *_timestamps(),
        sa.Column('room_id', sa.Integer(), nullable=False),
        sa.Column('period', sa.String(7), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'period', name='uq_shared_utility_room_period'),
    )
    op.create_index('ix_shared_utility_charges_room_id', 'shared_utility_charges', ['room_id'])

    op.create_table(
        'payments',
        *_timestamps(),
        sa.Column('tenant_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('method', sa.Enum('CASH', 'BANK_TRANSFER', 'CHEQUE', 'OTHER', name='paymentmethod'), nullable=False),
        sa.Column('payment_type', sa.Enum('FULL', 'PARTIAL', name='paymenttype'), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=True),
        sa.Column('period_end', sa.Date(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_tenant_id', 'payments', ['tenant_id'])
    op.create_index('ix_payments_payment_date', 'payments', ['payment_date'])
    op.create_index('idx_payment_tenant_date', 'payments', ['tenant_id', 'payment_date'])

    op.create_table(
        'payment_allocations',
        *_timestamps(),
        sa.Column('payment_id', sa.Integer(), nullable=False),
        sa.Column('due_type', sa.Enum('RENT', 'BILL', name='duetype'), nullable=False),
        sa.Column('due_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['payment_id'], ['payments.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payment_allocations_payment_id', 'payment_allocations', ['payment_id'])
    op.create_index('idx_allocation_due', 'payment_allocations', ['due_type', 'due_id'])

    op.create_table(
        'audit_logs',
        *_timestamps(),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('actor_role', sa.String(20), nullable=False),
        sa.Column('before_state', sa.JSON(), nullable=True),
        sa.Column('after_state', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade() -> None:
    """Drop billing tables."""
    op.drop_table('audit_logs')
    op.drop_table('payment_allocations')
    op.drop_table('payments')
    op.drop_table('shared_utility_charges')
    op.drop_table('bills')
    op.drop_table('rent_charges')
    op.drop_table('tenancies')
    op.drop_table('rooms')
    op.drop_table('hostels')
    op.drop_table('users')

    if op.get_context().dialect.name == 'postgresql':
        for type_name in ENUM_TYPES:
            op.execute(f'DROP TYPE IF EXISTS {type_name}')
