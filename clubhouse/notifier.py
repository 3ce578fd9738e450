import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import Dict, List, Optional

from cryptography.fernet import InvalidToken
from flask import current_app, render_template
from jinja2 import TemplateError
from markupsafe import Markup

from .errors import ValidationFailed
from .models import db, EmailConfiguration, EmailLog

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    delivered: bool
    error: Optional[str] = None


class Notifier:
    """
    Sends transactional email over SMTP and records every attempt in EmailLog.

    SMTP settings come from the active EmailConfiguration row, falling back to
    the MAIL_* config values. Transport failures are reported in the returned
    DeliveryResult and never raised.
    """

    SUBJECTS = {
        'team_registration_received': 'Registration received: {team_name}',
        'team_registration_admin': 'New team registration: {team_name}',
        'registration_confirmed': 'Registration confirmed: {team_name}',
        'registration_rejected': 'Registration update: {team_name}',
        'owner_registered': 'Team owner registration received: {team_name}',
        'owner_registered_admin': 'New team owner: {team_name}',
        'owner_verified': 'You are verified for the {tournament_name} auction',
        'owner_rejected': 'Team owner registration update: {team_name}',
        'owner_payment_received': 'Entry fee received: {team_name}',
        'auction_player_registered': 'Auction registration received: {player_name}',
        'player_sold': 'Congratulations! You have been picked by {team_name}',
        'player_unsold': 'Auction update for {player_name}',
        'player_approved': 'You are approved for the {tournament_name} auction',
        'player_rejected': 'Auction registration update: {player_name}',
        'test_email': 'SMTP test from {club_name}',
    }

    def __init__(self, timeout: int = None):
        self.timeout = timeout

    # ==================== Settings ====================

    def _settings(self) -> Optional[Dict]:
        row = EmailConfiguration.query.filter_by(is_active=True).order_by(
            EmailConfiguration.id.desc()
        ).first()
        if row:
            return {
                'host': row.smtp_host,
                'port': row.smtp_port,
                'user': row.smtp_user,
                'password': row.smtp_password,
                'from_email': row.from_email,
                'from_name': row.from_name,
                'use_ssl': row.use_ssl,
            }

        cfg = current_app.config
        from_email = cfg.get('MAIL_FROM_EMAIL') or cfg.get('MAIL_USERNAME')
        if not cfg.get('MAIL_SERVER') or not from_email:
            return None
        return {
            'host': cfg['MAIL_SERVER'],
            'port': cfg.get('MAIL_PORT', 587),
            'user': cfg.get('MAIL_USERNAME'),
            'password': cfg.get('MAIL_PASSWORD'),
            'from_email': from_email,
            'from_name': cfg.get('MAIL_FROM_NAME'),
            'use_ssl': cfg.get('MAIL_USE_SSL', False),
        }

    def get_settings(self) -> Optional[EmailConfiguration]:
        return EmailConfiguration.query.filter_by(is_active=True).order_by(
            EmailConfiguration.id.desc()
        ).first()

    def save_settings(self, smtp_host: str, smtp_port: int, smtp_user: str, from_email: str,
                      smtp_password: str = None, from_name: str = None,
                      use_ssl: bool = False) -> EmailConfiguration:
        """Store new SMTP settings. A missing password keeps the current one."""
        current = self.get_settings()
        if not smtp_password and not current:
            raise ValidationFailed('SMTP password is required')

        row = EmailConfiguration(
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            smtp_user=smtp_user,
            from_email=from_email,
            from_name=from_name,
            use_ssl=use_ssl,
            is_active=True,
        )
        if smtp_password:
            row.smtp_password = smtp_password
        else:
            row.smtp_password_encrypted = current.smtp_password_encrypted

        EmailConfiguration.query.filter_by(is_active=True).update({'is_active': False})
        db.session.add(row)
        db.session.commit()
        logger.info(f"SMTP settings updated: {smtp_host}:{smtp_port}")
        return row

    def recent_logs(self, limit: int = 50, offset: int = 0, status: str = None) -> List[EmailLog]:
        query = EmailLog.query
        if status:
            query = query.filter_by(status=status)
        return query.order_by(EmailLog.created_at.desc(), EmailLog.id.desc()).offset(offset).limit(limit).all()

    # ==================== Delivery ====================

    def send(self, to: str, subject: str, html: str, text: str = None,
             template_key: str = None) -> DeliveryResult:
        """Send one message and log the attempt."""
        try:
            settings = self._settings()
        except InvalidToken:
            settings = None
            result = DeliveryResult(False, 'Stored SMTP password cannot be decrypted')
        else:
            if settings is None:
                result = DeliveryResult(False, 'SMTP is not configured')
            else:
                result = self._deliver(settings, to, subject, html, text)

        self._log(to, subject, template_key, result)
        return result

    def _deliver(self, settings: Dict, to: str, subject: str, html: str, text: str = None) -> DeliveryResult:
        msg = EmailMessage()
        msg['Subject'] = subject
        msg['From'] = formataddr((settings.get('from_name') or '', settings['from_email']))
        msg['To'] = to
        msg.set_content(text or Markup(html).striptags())
        msg.add_alternative(html, subtype='html')

        timeout = self.timeout or current_app.config.get('MAIL_TIMEOUT', 15)
        host, port = settings['host'], settings['port']

        implicit_tls = settings.get('use_ssl') or port == 465
        transport = smtplib.SMTP_SSL if implicit_tls else smtplib.SMTP

        try:
            smtp = transport(host, port, timeout=timeout)
            # STARTTLS runs inside the block so a failed handshake still closes the socket
            with smtp:
                if not implicit_tls:
                    smtp.starttls()
                if settings.get('user'):
                    smtp.login(settings['user'], settings.get('password') or '')
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Email to {to} failed: {e}")
            return DeliveryResult(False, str(e) or e.__class__.__name__)

        logger.info(f"Email sent to {to}: {subject}")
        return DeliveryResult(True)

    def _log(self, to: str, subject: str, template_key: Optional[str], result: DeliveryResult):
        db.session.add(EmailLog(
            recipient=to,
            subject=subject[:300],
            template_key=template_key,
            status='SENT' if result.delivered else 'FAILED',
            error=result.error,
        ))
        db.session.commit()

    # ==================== Templates ====================

    def render(self, template_key: str, **context) -> tuple:
        context.setdefault('club_name', current_app.config.get('MAIL_FROM_NAME', 'Cricket Club'))
        html = render_template(f'email/{template_key}.html', **context)
        subject = self.SUBJECTS.get(template_key, '{club_name}').format_map(_SubjectFields(context))
        return subject, html

    def notify(self, template_key: str, to: str, **context) -> DeliveryResult:
        """Render `template_key` and send it. Template errors are logged and reported, not raised."""
        if not to:
            return DeliveryResult(False, 'No recipient')
        try:
            subject, html = self.render(template_key, **context)
        except TemplateError as e:
            logger.exception(f"Email template '{template_key}' failed to render")
            return DeliveryResult(False, f"Template error: {e}")
        return self.send(to, subject, html, template_key=template_key)

    def notify_admins(self, template_key: str, **context) -> List[DeliveryResult]:
        recipients = current_app.config.get('ADMIN_NOTIFICATION_EMAILS') or []
        return [self.notify(template_key, address, **context) for address in recipients]


class _SubjectFields(dict):
    """Subject placeholders resolved from the template context; unknown keys render blank."""

    def __init__(self, context: dict):
        super().__init__()
        team = context.get('team')
        player = context.get('player')
        tournament = context.get('tournament')
        self.update({
            'club_name': context.get('club_name', ''),
            'team_name': context.get('team_name') or _attr(team, 'team_name') or _attr(team, 'name') or '',
            'player_name': context.get('player_name') or _attr(player, 'name') or '',
            'tournament_name': context.get('tournament_name') or _attr(tournament, 'name') or '',
        })

    def __missing__(self, key):
        return ''


def _attr(obj, name):
    return getattr(obj, name, None) if obj is not None else None
