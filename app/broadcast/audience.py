import asyncio

from app.config import Settings
from app.db import SupabaseClient
from app.logging_config import get_logger

logger = get_logger(__name__)

TOKEN_FIELD = "fcm_token"
ROLE_FIELD = "role"

AUDIENCE_ALL = "all"
CHW_SELECTORS = ("chws", "chw")
DOCTOR_SELECTORS = ("doctors", "doctor")
EXPLICIT_ROLE_PAIRS = {("chws", "chw"), ("doctors", "doctor")}


def role_matches(target_role: str, role: str | None) -> bool:
	"""
	Совпадение роли пользователя с целевой аудиторией.

	Единственное/множественное число определяется отбрасыванием последнего
	символа у target_role: "nurses" совпадёт с "nurse", но и "bus" с "bu".
	"""
	if not isinstance(role, str):
		return False
	role = role.casefold()
	if role == target_role:
		return True
	if len(target_role) > 1 and role == target_role[:-1]:
		return True
	return (target_role, role) in EXPLICIT_ROLE_PAIRS


def _extract_tokens(rows: list[dict]) -> list[str]:
	tokens: list[str] = []
	for row in rows:
		token = row.get(TOKEN_FIELD)
		if isinstance(token, str) and token.strip():
			tokens.append(token)
	return tokens


class AudienceResolver:
	def __init__(self, db: SupabaseClient, settings: Settings) -> None:
		self._db = db
		self._settings = settings

	async def _fetch_partition(self, table: str, select: str) -> list[dict]:
		return await self._db.get_all(
			table,
			{TOKEN_FIELD: "not.is.null", "select": select, "order": "id.asc"},
			page_size=self._settings.partition_page_size,
		)

	async def _partition_tokens(self, table: str) -> list[str]:
		return _extract_tokens(await self._fetch_partition(table, TOKEN_FIELD))

	async def _role_tokens(self, target_role: str) -> list[str]:
		rows = await self._fetch_partition(self._settings.users_table, f"{TOKEN_FIELD},{ROLE_FIELD}")
		return _extract_tokens([r for r in rows if role_matches(target_role, r.get(ROLE_FIELD))])

	async def collect_tokens(self, selector: str) -> list[str]:
		"""
		Все токены-кандидаты для аудитории, с повторами.

		"all" сравнивается строго, остальные селекторы без учёта регистра.
		Ошибка любого раздела пробрасывается как DependencyError.
		"""
		if selector == AUDIENCE_ALL:
			queries = [
				self._partition_tokens(self._settings.users_table),
				self._partition_tokens(self._settings.doctors_table),
				self._partition_tokens(self._settings.chws_table),
			]
		else:
			target_role = selector.casefold()
			queries = []
			if target_role in CHW_SELECTORS:
				queries.append(self._partition_tokens(self._settings.chws_table))
			if target_role in DOCTOR_SELECTORS:
				queries.append(self._partition_tokens(self._settings.doctors_table))
			queries.append(self._role_tokens(target_role))

		results = await asyncio.gather(*queries)
		tokens = [token for part in results for token in part]
		logger.info("audience_collected", extra={"audience": selector, "tokens_found": len(tokens)})
		return tokens

	async def resolve(self, selector: str) -> set[str]:
		return set(await self.collect_tokens(selector))
