"""
Servicio simple de envío de correos (SMTP) usado por las tareas en segundo plano.
"""
import logging
import smtplib
from email.message import EmailMessage

from hackathon_api.core.config import Settings

_log = logging.getLogger("hackathon.email")


def send_email(cfg: Settings, to_email: str, subject: str, html_body: str, text_body: str | None = None) -> None:
    if not cfg.smtp_configured:
        raise RuntimeError("SMTP no configurado. Define SMTP_HOST/SMTP_USER/SMTP_PASS en .env")

    msg = EmailMessage()
    msg["From"] = f"{cfg.smtp_from_name} <{cfg.smtp_from_email or cfg.smtp_user}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    if text_body:
        msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")

    # Conexión TLS por defecto (587)
    if cfg.smtp_use_tls:
        with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port) as server:
            server.starttls()
            server.login(cfg.smtp_user, cfg.smtp_pass)
            server.send_message(msg)
    else:
        with smtplib.SMTP_SSL(cfg.smtp_host, cfg.smtp_port) as server:
            server.login(cfg.smtp_user, cfg.smtp_pass)
            server.send_message(msg)


def send_welcome_email(cfg: Settings, email: str, name: str) -> bool:
    """Envía el correo de bienvenida.

    Devuelve True si salió por SMTP y False si sólo se simuló (SMTP sin configurar).
    """
    subject = f"Welcome to {cfg.app_name}!"
    html = f"""
    <p>Hi {name},</p>
    <p>Thanks for joining <b>{cfg.app_name}</b>. Your account is ready.</p>
    <p>Happy hacking!</p>
    """
    text = f"Hi {name},\nThanks for joining {cfg.app_name}. Your account is ready.\nHappy hacking!"

    if not cfg.smtp_configured:
        _log.info("SMTP sin configurar; bienvenida simulada para %s", email)
        return False
    send_email(cfg, email, subject, html, text)
    return True
