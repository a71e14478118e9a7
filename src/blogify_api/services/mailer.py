"""验证码邮件投递。

未配置 SMTP 时仅写日志（开发模式），便于本地联调。
"""

from __future__ import annotations

import logging
import smtplib
import ssl
from email.mime.text import MIMEText

from blogify_api.core.config import Settings, get_settings
from blogify_api.errors import AppError
from blogify_api.models.enums import OtpPurpose
from blogify_api.services.credentials import redact_email

logger = logging.getLogger("blogify_api.mailer")

_SUBJECTS = {
    OtpPurpose.EMAIL_VERIFICATION: "Verify your email address",
    OtpPurpose.PASSWORD_RESET: "Reset your password",
    OtpPurpose.LOGIN: "Your login code",
}


class MailDeliveryError(AppError):
    """邮件投递失败。"""

    code = "MAIL_DELIVERY_FAILED"
    default_message = "Failed to send email"


class OtpMailer:
    """通过 SMTP 发送验证码邮件。"""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.from_email = settings.mail_from or settings.smtp_user

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host and self.from_email)

    def _render(self, code: int, purpose: OtpPurpose) -> tuple[str, str]:
        subject = f"{self.settings.app_name}: {_SUBJECTS.get(purpose, 'Your verification code')}"
        minutes = max(1, self.settings.otp_ttl_seconds // 60)
        body = (
            f"Your verification code is {code}.\n"
            f"It expires in {minutes} minutes. If you did not request it, ignore this email."
        )
        return subject, body

    def send_otp(self, to_email: str, code: int, purpose: OtpPurpose) -> None:
        """投递验证码，失败抛出 MailDeliveryError。"""
        subject, body = self._render(code, purpose)
        if not self.is_configured:
            if self.settings.is_production:
                logger.warning("smtp not configured, otp mail dropped to=%s", redact_email(to_email))
            else:
                logger.info("otp mail (dev mode) to=%s subject=%s body=%s", redact_email(to_email), subject, body)
            return

        message = MIMEText(body, "plain", "utf-8")
        message["Subject"] = subject
        message["From"] = f"{self.settings.app_name} <{self.from_email}>"
        message["To"] = to_email

        context = ssl.create_default_context()
        try:
            if self.settings.smtp_use_tls:
                with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as server:
                    server.starttls(context=context)
                    if self.settings.smtp_user and self.settings.smtp_password:
                        server.login(self.settings.smtp_user, self.settings.smtp_password)
                    server.sendmail(self.from_email, to_email, message.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self.settings.smtp_host, self.settings.smtp_port, context=context, timeout=30
                ) as server:
                    if self.settings.smtp_user and self.settings.smtp_password:
                        server.login(self.settings.smtp_user, self.settings.smtp_password)
                    server.sendmail(self.from_email, to_email, message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("otp mail failed to=%s", redact_email(to_email))
            raise MailDeliveryError() from exc

        logger.info("otp mail sent to=%s purpose=%s", redact_email(to_email), purpose.value)


def get_mailer() -> OtpMailer:
    """路由层依赖注入使用的邮件投递实例。"""
    return OtpMailer(get_settings())
