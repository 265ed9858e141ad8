"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', sa.String(36), primary_key=True)


def _created_at():
    return sa.Column('created_at', sa.DateTime(), nullable=False)


def upgrade():
    op.create_table('classes',
        _id(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('grade', sa.Integer(), nullable=True),
        sa.Column('section', sa.String(20), nullable=True),
        sa.Column('head_teacher', sa.String(255), nullable=True),
        sa.Column('student_count', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
    )

    op.create_table('teachers',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('short_name', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('subjects', sa.Text(), nullable=True),
        sa.Column('classes', sa.Text(), nullable=True),
        sa.Column('color', sa.String(20), nullable=False, server_default='#3498db'),
        sa.Column('ldap_username', sa.String(100), nullable=True),
        _created_at(),
    )
    op.create_index('ix_teachers_ldap_username', 'teachers', ['ldap_username'])

    op.create_table('rooms',
        _id(),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('building', sa.String(50), nullable=True),
        sa.Column('floor', sa.Integer(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('type', sa.String(30), nullable=False, server_default='classroom'),
        _created_at(),
    )

    op.create_table('subjects',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('short_name', sa.String(50), nullable=True),
        sa.Column('color', sa.String(20), nullable=False, server_default='#2ecc71'),
        _created_at(),
    )

    op.create_table('periods',
        _id(),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_break', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('name', sa.String(100), nullable=True),
        _created_at(),
        sa.UniqueConstraint('number', name='uq_periods_number'),
    )

    # ссылки на справочники без FK: удаление справочника не каскадится
    op.create_table('timetable_entries',
        _id(),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('period_id', sa.String(36), nullable=False),
        sa.Column('class_id', sa.String(36), nullable=False),
        sa.Column('subject_id', sa.String(36), nullable=False),
        sa.Column('teacher_id', sa.String(36), nullable=False),
        sa.Column('room_id', sa.String(36), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint('day_of_week', 'period_id', 'class_id', name='uq_timetable_slot_class'),
        sa.UniqueConstraint('day_of_week', 'period_id', 'teacher_id', name='uq_timetable_slot_teacher'),
        sa.UniqueConstraint('day_of_week', 'period_id', 'room_id', name='uq_timetable_slot_room'),
    )
    op.create_index('ix_timetable_slot', 'timetable_entries', ['day_of_week', 'period_id'])
    op.create_index('ix_timetable_entries_class_id', 'timetable_entries', ['class_id'])
    op.create_index('ix_timetable_entries_teacher_id', 'timetable_entries', ['teacher_id'])
    op.create_index('ix_timetable_entries_room_id', 'timetable_entries', ['room_id'])

    op.create_table('substitutions',
        _id(),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('period_id', sa.String(36), nullable=False),
        sa.Column('class_id', sa.String(36), nullable=False),
        sa.Column('original_teacher_id', sa.String(36), nullable=True),
        sa.Column('substitute_teacher_id', sa.String(36), nullable=True),
        sa.Column('subject_id', sa.String(36), nullable=True),
        sa.Column('room_id', sa.String(36), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('cancelled', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        sa.Column('created_by', sa.String(100), nullable=True),
    )
    op.create_index('ix_substitutions_date', 'substitutions', ['date'])
    op.create_index('ix_substitutions_class_id', 'substitutions', ['class_id'])
    op.create_index('ix_substitutions_substitute_teacher_id', 'substitutions', ['substitute_teacher_id'])


def downgrade():
    op.drop_table('substitutions')
    op.drop_table('timetable_entries')
    op.drop_table('periods')
    op.drop_table('subjects')
    op.drop_table('rooms')
    op.drop_table('teachers')
    op.drop_table('classes')
