"""
Script para aplicar as migrations do CRM.

Uso:
    python migrations/crm/apply.py

Requer: SUPABASE_URL e SUPABASE_SERVICE_KEY no ambiente ou no .env, e a
funcao exec_sql(sql text) criada no banco. Sem ela, execute os arquivos
manualmente no SQL Editor do Supabase.
"""
import sys
from pathlib import Path

from crm.core.config import settings
from crm.core.exceptions import ConfigurationError
from crm.services.supabase import get_supabase_client

MIGRATIONS_DIR = Path(__file__).parent

# Ordem das migrations
MIGRATIONS = [
    "001_crm_schema.sql",
    "002_campaign_functions.sql",
]


def apply_migrations(client) -> list[str]:
    """Aplica as migrations em ordem. Retorna as que falharam."""
    failed = []
    for migration_file in MIGRATIONS:
        path = MIGRATIONS_DIR / migration_file
        if not path.exists():
            print(f"[SKIP] {migration_file} nao encontrado")
            continue

        print(f"[APPLY] {migration_file}...")
        try:
            client.rpc("exec_sql", {"sql": path.read_text()}).execute()
            print(f"[OK] {migration_file}")
        except Exception as e:
            print(f"[ERROR] {migration_file}: {e}")
            failed.append(migration_file)
    return failed


if __name__ == "__main__":
    print("=== CRM Migrations ===")
    print(f"URL: {settings.SUPABASE_URL}")
    print()

    try:
        supabase = get_supabase_client()
    except ConfigurationError as e:
        print(f"Erro: {e}")
        sys.exit(1)

    failed = apply_migrations(supabase)

    if failed:
        print()
        print("Execute manualmente no Supabase SQL Editor:")
        for m in failed:
            print(f"  - migrations/crm/{m}")
        sys.exit(1)
