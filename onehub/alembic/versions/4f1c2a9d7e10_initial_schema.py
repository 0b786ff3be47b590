"""initial_schema

Revision ID: 4f1c2a9d7e10
Revises:
Create Date: 2026-10-19 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1c2a9d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all application tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'consultants',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('primary_skills', sa.Text, nullable=True),
        sa.Column('secondary_skills', sa.Text, nullable=True),
        sa.Column('total_experience', sa.String(50), nullable=True),
        sa.Column('linkedin_profile', sa.String(500), nullable=True),
        sa.Column('portfolio_link', sa.String(500), nullable=True),
        sa.Column('availability', sa.String(100), nullable=True),
        sa.Column('visa_status', sa.String(100), nullable=True),
        sa.Column('date_of_birth', sa.Date, nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        sa.Column('timezone', sa.String(50), nullable=True),
        sa.Column('degree_name', sa.String(255), nullable=True),
        sa.Column('university', sa.String(255), nullable=True),
        sa.Column('year_of_passing', sa.String(10), nullable=True),
        sa.Column('ssn', sa.String(20), nullable=True),
        sa.Column('how_got_visa', sa.String(255), nullable=True),
        sa.Column('year_came_to_us', sa.String(10), nullable=True),
        sa.Column('country_of_origin', sa.String(100), nullable=True),
        sa.Column('why_looking_for_job', sa.Text, nullable=True),
        sa.Column('preferred_work_location', sa.String(255), nullable=True),
        sa.Column('preferred_work_type', sa.String(50), nullable=True),
        sa.Column('expected_rate', sa.String(100), nullable=True),
        sa.Column('payroll_company', sa.String(255), nullable=True),
        sa.Column('payroll_contact_info', sa.Text, nullable=True),
        sa.Column('projects', sa.JSON, nullable=False),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'requirements',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('requirement_number', sa.Integer, nullable=False, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('company', sa.String(255), nullable=True),
        sa.Column('end_client', sa.String(255), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='NEW'),
        sa.Column('consultant_id', sa.String(36), sa.ForeignKey('consultants.id'), nullable=True),
        sa.Column('applied_for', sa.String(255), nullable=True),
        sa.Column('rate', sa.String(100), nullable=True),
        sa.Column('primary_tech_stack', sa.Text, nullable=True),
        sa.Column('imp_name', sa.String(255), nullable=True),
        sa.Column('client_website', sa.String(500), nullable=True),
        sa.Column('imp_website', sa.String(500), nullable=True),
        sa.Column('vendor_company', sa.String(255), nullable=True),
        sa.Column('vendor_website', sa.String(500), nullable=True),
        sa.Column('vendor_person_name', sa.String(255), nullable=True),
        sa.Column('vendor_phone', sa.String(50), nullable=True),
        sa.Column('vendor_email', sa.String(255), nullable=True),
        sa.Column('next_step', sa.Text, nullable=True),
        sa.Column('remote', sa.String(50), nullable=True),
        sa.Column('duration', sa.String(100), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('updated_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'interviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('requirement_id', sa.String(36), sa.ForeignKey('requirements.id'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('scheduled_date', sa.Date, nullable=False),
        sa.Column('scheduled_time', sa.String(5), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False, server_default='60'),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='Scheduled'),
        sa.Column('consultant_id', sa.String(36), sa.ForeignKey('consultants.id'), nullable=True),
        sa.Column('vendor_company', sa.String(255), nullable=True),
        sa.Column('interview_with', sa.String(255), nullable=True),
        sa.Column('result', sa.String(50), nullable=True),
        sa.Column('round', sa.String(50), nullable=True),
        sa.Column('mode', sa.String(50), nullable=True),
        sa.Column('meeting_type', sa.String(100), nullable=True),
        sa.Column('subject_line', sa.String(500), nullable=True),
        sa.Column('interviewer', sa.String(255), nullable=True),
        sa.Column('location', sa.String(500), nullable=True),
        sa.Column('interview_focus', sa.Text, nullable=True),
        sa.Column('special_note', sa.Text, nullable=True),
        sa.Column('job_description_excerpt', sa.Text, nullable=True),
        sa.Column('feedback_notes', sa.Text, nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('updated_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'next_step_comments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('requirement_id', sa.String(36), sa.ForeignKey('requirements.id'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('comment_text', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'email_accounts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('email_address', sa.String(255), nullable=False),
        sa.Column('app_password_encrypted', sa.Text, nullable=False),
        sa.Column('email_limit_per_rotation', sa.Integer, nullable=False, server_default='5'),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('order_index', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('user_id', 'email_address', name='uq_email_accounts_user_address'),
    )

    op.create_table(
        'bulk_email_campaigns',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('requirement_id', sa.String(36), sa.ForeignKey('requirements.id'), nullable=True),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body', sa.Text, nullable=False),
        sa.Column('total_recipients', sa.Integer, nullable=False, server_default='0'),
        sa.Column('rotation_enabled', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('emails_per_account', sa.Integer, nullable=False, server_default='5'),
        sa.Column('selected_account_ids', sa.JSON, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('email_server_campaign_id', sa.String(64), nullable=True),
        sa.Column('started_at', sa.DateTime, nullable=True),
        sa.Column('completed_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'campaign_recipients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('campaign_id', sa.String(36), sa.ForeignKey('bulk_email_campaigns.id'), nullable=False, index=True),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_name', sa.String(255), nullable=True),
        sa.Column('account_id', sa.String(36), sa.ForeignKey('email_accounts.id'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('message_id', sa.String(255), nullable=True),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('sent_at', sa.DateTime, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'bulk_email_campaign_status',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='queued'),
        sa.Column('total', sa.Integer, nullable=False, server_default='0'),
        sa.Column('sent', sa.Integer, nullable=False, server_default='0'),
        sa.Column('failed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('processed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('progress', sa.Float, nullable=False, server_default='0'),
        sa.Column('details', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('started_at', sa.DateTime, nullable=True),
        sa.Column('completed_at', sa.DateTime, nullable=True),
    )

    op.create_table(
        'requirement_emails',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('requirement_id', sa.String(36), sa.ForeignKey('requirements.id'), nullable=False, index=True),
        sa.Column('recipient_email', sa.String(255), nullable=False),
        sa.Column('recipient_name', sa.String(255), nullable=True),
        sa.Column('sent_via', sa.String(20), nullable=False, server_default='loster_app'),
        sa.Column('subject', sa.String(500), nullable=True),
        sa.Column('body_preview', sa.Text, nullable=True),
        sa.Column('sent_date', sa.DateTime, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='sent'),
        sa.Column('match_confidence', sa.Integer, nullable=True),
        sa.Column('needs_user_confirmation', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('error_message', sa.Text, nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'activity_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), nullable=True, index=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(64), nullable=True),
        sa.Column('details', sa.JSON, nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )


def downgrade() -> None:
    """Drop all application tables."""
    op.drop_table('activity_logs')
    op.drop_table('requirement_emails')
    op.drop_table('bulk_email_campaign_status')
    op.drop_table('campaign_recipients')
    op.drop_table('bulk_email_campaigns')
    op.drop_table('email_accounts')
    op.drop_table('next_step_comments')
    op.drop_table('interviews')
    op.drop_table('requirements')
    op.drop_table('consultants')
    op.drop_table('users')
