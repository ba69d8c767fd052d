
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('roles', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('username', name='uq_users_username'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'charging_stations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('address_id', sa.Integer(), nullable=True),
        sa.Column('number_of_spaces', sa.Integer(), nullable=True),
        sa.CheckConstraint(
            'number_of_spaces IS NULL OR number_of_spaces > 0',
            name='ck_charging_station_spaces_positive',
        ),
    )

    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('charging_station_id', sa.Integer(), sa.ForeignKey('charging_stations.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_reservation', sa.DateTime(), nullable=False),
        sa.Column('end_reservation', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_reservations_charging_station_id', 'reservations', ['charging_station_id'])
    op.create_index('ix_reservations_user_id', 'reservations', ['user_id'])
    op.create_index(
        'ix_reservations_station_interval',
        'reservations',
        ['charging_station_id', 'start_reservation', 'end_reservation'],
    )

def downgrade():
    op.drop_index('ix_reservations_station_interval', table_name='reservations')
    op.drop_index('ix_reservations_user_id', table_name='reservations')
    op.drop_index('ix_reservations_charging_station_id', table_name='reservations')
    op.drop_table('reservations')
    op.drop_table('charging_stations')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
