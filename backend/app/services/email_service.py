"""
Service d'envoi d'emails SMTP.
Utilisé pour l'envoi des liens de réinitialisation de mot de passe aux étudiants.
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.config import settings

logger = logging.getLogger(__name__)


def send_password_reset_email(to_email: str, student_name: str, token: str) -> None:
    """
    Envoie le jeton de réinitialisation (texte + HTML).
    Lève une exception en cas d'échec SMTP.
    """
    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = "BUCODel : réinitialisation de votre mot de passe"

    text_content = (
        f"Bonjour {student_name},\n\n"
        "Une réinitialisation de mot de passe a été demandée pour votre compte.\n"
        f"Votre code de réinitialisation : {token}\n\n"
        f"Ce code expire dans {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.\n"
        "Si vous n'êtes pas à l'origine de cette demande, ignorez ce message.\n"
    )

    html_content = f"""
    <html>
      <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: auto;">
        <h2 style="color: #1a73e8;">Réinitialisation du mot de passe BUCODel</h2>
        <p>Bonjour <strong>{html.escape(student_name)}</strong>,</p>
        <p>Une réinitialisation de mot de passe a été demandée pour votre compte.</p>
        <p style="font-size: 18px; text-align: center; margin: 24px 0;">
          <code>{token}</code>
        </p>
        <p>Ce code expire dans {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</p>
        <hr style="border: none; border-top: 1px solid #eee;" />
        <p style="font-size: 12px; color: #888;">
          Si vous n'êtes pas à l'origine de cette demande, ignorez ce message.
        </p>
      </body>
    </html>
    """

    msg.attach(MIMEText(text_content, "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Email de réinitialisation envoyé à %s", to_email)


def deliver_password_reset(to_email: str, student_name: str, token: str) -> None:
    """Tâche d'arrière-plan : un échec SMTP est journalisé, la requête a déjà répondu."""
    try:
        send_password_reset_email(to_email, student_name, token)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Échec d'envoi de l'email de réinitialisation à %s : %s", to_email, exc)
