# Business services
from cmspro.services.account_service import AccountService
from cmspro.services.broadcast import BroadcastChannel, WebSocketBroadcaster, SYSTEM_STATUS_EVENT
from cmspro.services.complaint_service import ComplaintService
from cmspro.services.email_service import EmailService, email_service
from cmspro.services.system_mode_service import SystemModeService
