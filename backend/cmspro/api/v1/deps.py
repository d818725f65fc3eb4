"""
Service providers for the API layer.

The broadcaster is owned by the application (``app.state.broadcaster``) and
reaches services only through these dependencies, so tests can override any
of them with ``app.dependency_overrides``.
"""
from fastapi import Depends, Request

from cmspro.services.account_service import AccountService
from cmspro.services.broadcast import BroadcastChannel
from cmspro.services.complaint_service import ComplaintService
from cmspro.services.email_service import EmailService, email_service
from cmspro.services.system_mode_service import SystemModeService


def get_email_service() -> EmailService:
    return email_service


def get_broadcast_channel(request: Request) -> BroadcastChannel:
    return request.app.state.broadcaster


def get_system_mode_service(
    channel: BroadcastChannel = Depends(get_broadcast_channel)
) -> SystemModeService:
    return SystemModeService(channel)


def get_complaint_service(
    mode_service: SystemModeService = Depends(get_system_mode_service)
) -> ComplaintService:
    return ComplaintService(mode_service)


def get_account_service(
    mail: EmailService = Depends(get_email_service)
) -> AccountService:
    return AccountService(mail)
