"""
Base Repository - Interface comum para todos os repositories.

Este modulo define a base que todos os repositories herdam,
garantindo consistencia e facilitando testes.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, TypeVar

from crm.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

# Type variable para entidades
T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """
    Base para repositories.

    Attributes:
        db: Cliente de banco de dados (Supabase ou fake de testes)
        table_name: Nome da tabela no banco de dados

    Example:
        class CustomerRepository(BaseRepository[Customer]):
            @property
            def table_name(self) -> str:
                return "customers"

    Erros do banco sao convertidos em DatabaseError; quem chama decide
    se propaga (rotas) ou loga e segue (tasks em background).
    """

    def __init__(self, db_client: Any):
        """
        Inicializa o repository.

        Args:
            db_client: Cliente de banco de dados (Supabase, fake, etc.)
        """
        self.db = db_client

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Nome da tabela no banco."""
        pass

    def table(self):
        """Query builder da tabela do repository."""
        return self.db.table(self.table_name)

    def _execute(self, query, action: str, **context) -> Any:
        """
        Executa query convertendo falhas em DatabaseError.

        Args:
            query: Query builder pronto para execute()
            action: Descricao curta para logs
            **context: Ids relevantes (vao para details)

        Returns:
            Response do PostgREST
        """
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Erro ao {action} em {self.table_name}: {e}", extra=context)
            raise DatabaseError(
                f"Database error while trying to {action}",
                details={"table": self.table_name, **context},
                original_error=e,
            ) from e

    @staticmethod
    def _first(response) -> Optional[dict]:
        return response.data[0] if response.data else None

    @staticmethod
    def _rows(response) -> List[dict]:
        return list(response.data or [])
