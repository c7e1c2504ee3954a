"""initial ledger schema

Revision ID: 3b7e1f2a9c41
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '3b7e1f2a9c41'
down_revision = None
branch_labels = None
depends_on = None

TRANSACTION_TYPES = ('buy', 'sell', 'deposit', 'withdrawal', 'dividend', 'interest')
IMPORT_STATUSES = ('pending', 'processing', 'completed', 'failed')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('email', sa.String(length=255), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'accounts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('account_type', sa.String(length=50), nullable=False),
        sa.Column('bank_name', sa.String(length=255), nullable=True),
        sa.Column('parent_account_name', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_email'], ['users.email'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_email', 'name', name='uq_account_user_name'),
    )
    op.create_index('ix_accounts_user_email', 'accounts', ['user_email'])

    op.create_table(
        'instrument_types',
        sa.Column('code', sa.String(length=20), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'instruments',
        sa.Column('code', sa.String(length=50), primary_key=True),
        sa.Column('instrument_type_code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('external_symbol', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['instrument_type_code'], ['instrument_types.code'], ondelete='RESTRICT'),
    )
    op.create_index('ix_instruments_instrument_type_code', 'instruments', ['instrument_type_code'])

    op.create_table(
        'instrument_prices',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('instrument_code', sa.String(length=50), nullable=False),
        sa.Column('price_date', sa.Date(), nullable=False),
        sa.Column('price', sa.Numeric(20, 8), nullable=False),
        sa.Column('currency_code', sa.String(length=10), nullable=False),
        sa.Column('as_of', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['instrument_code'], ['instruments.code'], ondelete='CASCADE'),
        sa.UniqueConstraint('instrument_code', 'price_date', name='uq_instrument_price_date'),
        sa.CheckConstraint('price > 0', name='ck_instrument_price_positive'),
    )
    op.create_index('idx_instrument_price_recent', 'instrument_prices', ['instrument_code', 'price_date'])

    op.create_table(
        'account_instruments',
        sa.Column('user_email', sa.String(length=255), primary_key=True),
        sa.Column('account_name', sa.String(length=255), primary_key=True),
        sa.Column('instrument_code', sa.String(length=50), primary_key=True),
        sa.Column('quantity', sa.Numeric(20, 6), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'imported_files',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('content_hash', sa.String(length=64), nullable=False),
        sa.Column('file_path', sa.String(length=500), nullable=False),
        sa.Column('status', sa.Enum(*IMPORT_STATUSES, name='import_status'), nullable=False),
        sa.Column('rows_processed', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('errors_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_details', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_email'], ['users.email'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_email', 'content_hash', name='uq_imported_file_user_hash'),
    )
    op.create_index('ix_imported_files_user_email', 'imported_files', ['user_email'])

    op.create_table(
        'transactions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('account_name', sa.String(length=255), nullable=False),
        sa.Column('instrument_code', sa.String(length=50), nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('transaction_type', sa.Enum(*TRANSACTION_TYPES, name='transaction_type'), nullable=False),
        sa.Column('quantity', sa.Numeric(20, 6), nullable=False),
        sa.Column('price', sa.Numeric(20, 8), nullable=True),
        sa.Column('total_amount', sa.Numeric(20, 8), nullable=True),
        sa.Column('currency_code', sa.String(length=10), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('imported_file_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['instrument_code'], ['instruments.code'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['imported_file_id'], ['imported_files.id'], ondelete='SET NULL'),
    )
    op.create_index('ix_transactions_user_email', 'transactions', ['user_email'])
    op.create_index('ix_transactions_imported_file_id', 'transactions', ['imported_file_id'])
    op.create_index('idx_transaction_balance_key', 'transactions', ['user_email', 'account_name', 'instrument_code'])
    op.create_index('idx_transaction_user_date', 'transactions', ['user_email', 'transaction_date'])

    # Default instrument types
    op.bulk_insert(
        sa.table('instrument_types', sa.column('code', sa.String), sa.column('name', sa.String)),
        [
            {'code': 'cash', 'name': 'Cash'},
            {'code': 'bond', 'name': 'Bonds'},
            {'code': 'stock', 'name': 'Stocks'},
            {'code': 'other', 'name': 'Other'},
        ],
    )


def downgrade() -> None:
    op.drop_index('idx_transaction_user_date', 'transactions')
    op.drop_index('idx_transaction_balance_key', 'transactions')
    op.drop_index('ix_transactions_imported_file_id', 'transactions')
    op.drop_index('ix_transactions_user_email', 'transactions')
    op.drop_table('transactions')

    op.drop_index('ix_imported_files_user_email', 'imported_files')
    op.drop_table('imported_files')

    op.drop_table('account_instruments')

    op.drop_index('idx_instrument_price_recent', 'instrument_prices')
    op.drop_table('instrument_prices')

    op.drop_index('ix_instruments_instrument_type_code', 'instruments')
    op.drop_table('instruments')
    op.drop_table('instrument_types')

    op.drop_index('ix_accounts_user_email', 'accounts')
    op.drop_table('accounts')
    op.drop_table('users')

    sa.Enum(name='transaction_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='import_status').drop(op.get_bind(), checkfirst=True)
