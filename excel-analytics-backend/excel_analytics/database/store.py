"""
Armazenamento de documentos: usuários e planilhas enviadas.

Três implementações compartilham a mesma interface:
- SupabaseDocumentStore: tabelas "users" e "excel_files" no Supabase
- InMemoryDocumentStore: dicionários em memória (desenvolvimento e testes)
- NullDocumentStore: não persiste nada (variante anônima do upload)
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from supabase import create_client

from excel_analytics import config
from excel_analytics.errors import PersistenceError
from excel_analytics.models.excel_data import ExcelFileDocument
from excel_analytics.models.user import User

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
FILES_TABLE = "excel_files"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentStore:
    """Interface comum dos backends de armazenamento"""

    #: False para backends que descartam as gravações
    persists = True

    # Planilhas
    def insert_file(self, document: ExcelFileDocument) -> ExcelFileDocument:
        raise NotImplementedError

    def get_files_by_user(self, user_id: str) -> List[ExcelFileDocument]:
        """Planilhas do usuário, mais recentes primeiro"""
        raise NotImplementedError

    def get_all_files(self) -> List[ExcelFileDocument]:
        raise NotImplementedError

    def get_file(self, file_id: str) -> Optional[ExcelFileDocument]:
        raise NotImplementedError

    def delete_file(self, file_id: str) -> bool:
        raise NotImplementedError

    def delete_files_by_user(self, user_id: str) -> int:
        raise NotImplementedError

    def count_files(self, since: Optional[str] = None) -> int:
        raise NotImplementedError

    # Usuários
    def insert_user(self, user: User) -> User:
        raise NotImplementedError

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_user_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_users(self) -> List[User]:
        raise NotImplementedError

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        raise NotImplementedError

    def delete_user(self, user_id: str) -> bool:
        raise NotImplementedError

    def count_users(self, **filters: Any) -> int:
        raise NotImplementedError


class NullDocumentStore(DocumentStore):
    """Backend sem persistência: gravações são descartadas, leituras vêm vazias"""

    persists = False

    def insert_file(self, document: ExcelFileDocument) -> ExcelFileDocument:
        return document

    def get_files_by_user(self, user_id: str) -> List[ExcelFileDocument]:
        return []

    def get_all_files(self) -> List[ExcelFileDocument]:
        return []

    def get_file(self, file_id: str) -> Optional[ExcelFileDocument]:
        return None

    def delete_file(self, file_id: str) -> bool:
        return False

    def delete_files_by_user(self, user_id: str) -> int:
        return 0

    def count_files(self, since: Optional[str] = None) -> int:
        return 0

    def insert_user(self, user: User) -> User:
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        return None

    def list_users(self) -> List[User]:
        return []

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        return None

    def delete_user(self, user_id: str) -> bool:
        return False

    def count_users(self, **filters: Any) -> int:
        return 0


class InMemoryDocumentStore(DocumentStore):
    """Backend em memória, protegido por lock (as rotas síncronas rodam em threadpool)"""

    def __init__(self):
        self._lock = threading.Lock()
        self._files: Dict[str, ExcelFileDocument] = {}
        self._users: Dict[str, User] = {}

    def insert_file(self, document: ExcelFileDocument) -> ExcelFileDocument:
        stored = document.model_copy(update={
            "id": document.id or uuid4().hex,
            "createdAt": document.createdAt or utc_now_iso(),
        })
        with self._lock:
            self._files[stored.id] = stored
        return stored

    def get_files_by_user(self, user_id: str) -> List[ExcelFileDocument]:
        with self._lock:
            files = [f for f in self._files.values() if f.userId == user_id]
        return _newest_first(files)

    def get_all_files(self) -> List[ExcelFileDocument]:
        with self._lock:
            files = list(self._files.values())
        return _newest_first(files)

    def get_file(self, file_id: str) -> Optional[ExcelFileDocument]:
        with self._lock:
            return self._files.get(file_id)

    def delete_file(self, file_id: str) -> bool:
        with self._lock:
            return self._files.pop(file_id, None) is not None

    def delete_files_by_user(self, user_id: str) -> int:
        with self._lock:
            ids = [fid for fid, f in self._files.items() if f.userId == user_id]
            for fid in ids:
                del self._files[fid]
        return len(ids)

    def count_files(self, since: Optional[str] = None) -> int:
        with self._lock:
            files = list(self._files.values())
        if since is None:
            return len(files)
        return sum(1 for f in files if (f.createdAt or "") >= since)

    def insert_user(self, user: User) -> User:
        stored = user.model_copy(update={
            "id": user.id or uuid4().hex,
            "createdAt": user.createdAt or utc_now_iso(),
        })
        with self._lock:
            if any(u.email == stored.email for u in self._users.values()):
                raise PersistenceError(f"User {stored.email} already exists")
            self._users[stored.id] = stored
        return stored

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user
        return None

    def list_users(self) -> List[User]:
        with self._lock:
            users = list(self._users.values())
        return _newest_first(users)

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update=data)
            self._users[user_id] = updated
        return updated

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def count_users(self, **filters: Any) -> int:
        users = self.list_users()
        return sum(
            1 for u in users
            if all(getattr(u, key) == value for key, value in filters.items())
        )


class SupabaseDocumentStore(DocumentStore):
    """Backend Supabase; qualquer falha do cliente vira PersistenceError"""

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def _execute(self, action: str, query):
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Erro no Supabase ao {action}: {e}")
            raise PersistenceError("Storage unavailable") from e

    def insert_file(self, document: ExcelFileDocument) -> ExcelFileDocument:
        row = document.model_dump(exclude={"id"}, exclude_none=True)
        row.setdefault("createdAt", utc_now_iso())
        response = self._execute("inserir planilha", self.client.table(FILES_TABLE).insert(row))
        if not response.data:
            raise PersistenceError("Storage rejected the upload")
        return ExcelFileDocument(**_with_str_id(response.data[0]))

    def get_files_by_user(self, user_id: str) -> List[ExcelFileDocument]:
        query = (
            self.client.table(FILES_TABLE)
            .select("*")
            .eq("userId", user_id)
            .order("createdAt", desc=True)
        )
        response = self._execute("listar planilhas do usuário", query)
        return [ExcelFileDocument(**_with_str_id(row)) for row in response.data or []]

    def get_all_files(self) -> List[ExcelFileDocument]:
        query = self.client.table(FILES_TABLE).select("*").order("createdAt", desc=True)
        response = self._execute("listar planilhas", query)
        return [ExcelFileDocument(**_with_str_id(row)) for row in response.data or []]

    def get_file(self, file_id: str) -> Optional[ExcelFileDocument]:
        query = self.client.table(FILES_TABLE).select("*").eq("id", file_id)
        response = self._execute("obter planilha", query)
        if response.data:
            return ExcelFileDocument(**_with_str_id(response.data[0]))
        return None

    def delete_file(self, file_id: str) -> bool:
        query = self.client.table(FILES_TABLE).delete().eq("id", file_id)
        response = self._execute("excluir planilha", query)
        return bool(response.data)

    def delete_files_by_user(self, user_id: str) -> int:
        query = self.client.table(FILES_TABLE).delete().eq("userId", user_id)
        response = self._execute("excluir planilhas do usuário", query)
        return len(response.data or [])

    def count_files(self, since: Optional[str] = None) -> int:
        query = self.client.table(FILES_TABLE).select("id", count="exact")
        if since is not None:
            query = query.gte("createdAt", since)
        response = self._execute("contar planilhas", query)
        return response.count or 0

    def insert_user(self, user: User) -> User:
        row = user.model_dump(exclude={"id"}, exclude_none=True)
        row.setdefault("createdAt", utc_now_iso())
        response = self._execute("registrar usuário", self.client.table(USERS_TABLE).insert(row))
        if not response.data:
            raise PersistenceError("Storage rejected the user")
        return User(**_with_str_id(response.data[0]))

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        query = self.client.table(USERS_TABLE).select("*").eq("id", user_id)
        response = self._execute("obter usuário", query)
        if response.data:
            return User(**_with_str_id(response.data[0]))
        return None

    def get_user_by_email(self, email: str) -> Optional[User]:
        query = self.client.table(USERS_TABLE).select("*").eq("email", email)
        response = self._execute("obter usuário por e-mail", query)
        if response.data:
            return User(**_with_str_id(response.data[0]))
        return None

    def list_users(self) -> List[User]:
        query = self.client.table(USERS_TABLE).select("*").order("createdAt", desc=True)
        response = self._execute("listar usuários", query)
        return [User(**_with_str_id(row)) for row in response.data or []]

    def update_user(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        query = self.client.table(USERS_TABLE).update(data).eq("id", user_id)
        response = self._execute("atualizar usuário", query)
        if response.data:
            return User(**_with_str_id(response.data[0]))
        return None

    def delete_user(self, user_id: str) -> bool:
        query = self.client.table(USERS_TABLE).delete().eq("id", user_id)
        response = self._execute("excluir usuário", query)
        return bool(response.data)

    def count_users(self, **filters: Any) -> int:
        query = self.client.table(USERS_TABLE).select("id", count="exact")
        for key, value in filters.items():
            query = query.eq(key, value)
        response = self._execute("contar usuários", query)
        return response.count or 0


def _newest_first(items: list) -> list:
    # reversed() keeps later inserts first when timestamps tie
    return sorted(reversed(items), key=lambda item: item.createdAt or "", reverse=True)


def _with_str_id(row: Dict[str, Any]) -> Dict[str, Any]:
    # Supabase devolve ids inteiros ou uuid; a API trabalha com strings
    row = dict(row)
    if row.get("id") is not None:
        row["id"] = str(row["id"])
    if row.get("userId") is not None:
        row["userId"] = str(row["userId"])
    return row


# Singleton para o cliente Supabase
_supabase_client = None


def get_supabase_client():
    """
    Obtém uma instância única do cliente Supabase

    Returns:
        Client: Cliente Supabase inicializado
    """
    global _supabase_client
    if _supabase_client is None:
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise PersistenceError("Supabase credentials are not configured")
        try:
            _supabase_client = create_client(config.SUPABASE_URL, config.SUPABASE_KEY)
            logger.info("Cliente Supabase inicializado com sucesso")
        except Exception as e:
            logger.error(f"Erro ao inicializar cliente Supabase: {e}")
            raise PersistenceError("Storage unavailable") from e
    return _supabase_client


# Store padrão da aplicação (escolhido por STORAGE_BACKEND)
_default_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
    """Dependência FastAPI: store configurado para a aplicação"""
    global _default_store
    if _default_store is None:
        if config.STORAGE_BACKEND == "supabase":
            _default_store = SupabaseDocumentStore()
        else:
            _default_store = InMemoryDocumentStore()
        logger.info(f"Usando armazenamento: {type(_default_store).__name__}")
    return _default_store


def get_null_store() -> DocumentStore:
    """Dependência FastAPI: store sem persistência (upload anônimo)"""
    return NullDocumentStore()
