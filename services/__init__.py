from .mail import send_mail, MailDeliveryError
from .storage import upload_file, open_file, StorageError, StorageFileNotFound
from .auth import admin_required, issue_admin_token, verify_admin_token

__all__ = [
    'send_mail', 'MailDeliveryError',
    'upload_file', 'open_file', 'StorageError', 'StorageFileNotFound',
    'admin_required', 'issue_admin_token', 'verify_admin_token',
]
