import asyncio
from dataclasses import dataclass, field

import firebase_admin
from firebase_admin import credentials, messaging

from app.config import Settings
from app.errors import DependencyError
from app.logging_config import get_logger

logger = get_logger(__name__)

FIREBASE_APP_NAME = "broadcast-notifications"


@dataclass
class TokenOutcome:
	token: str
	success: bool
	message_id: str | None = None
	error: str | None = None


@dataclass
class BatchResult:
	outcomes: list[TokenOutcome] = field(default_factory=list)

	@property
	def success_count(self) -> int:
		return sum(1 for o in self.outcomes if o.success)

	@property
	def failure_count(self) -> int:
		return sum(1 for o in self.outcomes if not o.success)


def build_credentials(settings: Settings) -> credentials.Base:
	"""
	Учётные данные Firebase: service account из env, затем JSON-файл,
	затем Application Default Credentials.
	"""
	if settings.firebase_private_key and settings.firebase_client_email:
		return credentials.Certificate({
			"type": "service_account",
			"project_id": settings.firebase_project_id,
			"private_key_id": settings.firebase_private_key_id,
			"private_key": settings.firebase_private_key.replace("\\n", "\n"),
			"client_email": settings.firebase_client_email,
			"client_id": settings.firebase_client_id,
			"auth_uri": "https://accounts.google.com/o/oauth2/auth",
			"token_uri": "https://oauth2.googleapis.com/token",
			"auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
			"client_x509_cert_url": settings.firebase_client_cert_url,
		})
	if settings.firebase_credentials_file:
		return credentials.Certificate(settings.firebase_credentials_file)
	return credentials.ApplicationDefault()


def initialize_firebase(settings: Settings) -> firebase_admin.App:
	try:
		return firebase_admin.get_app(FIREBASE_APP_NAME)
	except ValueError:
		pass
	options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
	app = firebase_admin.initialize_app(build_credentials(settings), options, name=FIREBASE_APP_NAME)
	logger.info("firebase_initialized", extra={"project_id": settings.firebase_project_id})
	return app


class PushService:
	"""
	Firebase поднимается лениво, при первой отправке: конфиг проверяется
	уже после валидации запроса.
	"""

	def __init__(self, settings: Settings, app: firebase_admin.App | None = None) -> None:
		self._settings = settings
		self._app = app

	def _get_app(self) -> firebase_admin.App:
		if self._app is None:
			try:
				self._app = initialize_firebase(self._settings)
			except (ValueError, OSError) as e:
				logger.error(f"Firebase init error: {e}")
				raise DependencyError(f"Firebase initialization failed: {e}") from e
		return self._app

	async def send_multicast(
		self,
		tokens: list[str],
		title: str,
		body: str,
		data: dict[str, str],
	) -> BatchResult:
		"""
		Один вызов send_each_for_multicast. SDK блокирующий, поэтому
		запускаем его в отдельном потоке.
		"""
		message = messaging.MulticastMessage(
			tokens=tokens,
			notification=messaging.Notification(title=title, body=body),
			data=data,
			android=messaging.AndroidConfig(priority="high"),
			apns=messaging.APNSConfig(
				headers={"apns-priority": "10"},
				payload=messaging.APNSPayload(aps=messaging.Aps(sound="default")),
			),
		)
		response = await asyncio.to_thread(messaging.send_each_for_multicast, message, app=self._get_app())

		outcomes: list[TokenOutcome] = []
		for token, send_response in zip(tokens, response.responses):
			if send_response.success:
				outcomes.append(TokenOutcome(token=token, success=True, message_id=send_response.message_id))
				continue
			exc = send_response.exception
			outcomes.append(TokenOutcome(token=token, success=False, error=str(exc) if exc else "unknown_fcm_error"))
		return BatchResult(outcomes=outcomes)
