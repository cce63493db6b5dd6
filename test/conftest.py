import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_store(tmp_path: Path, name: str = "inventory.db"):
    from invpro.application.store import InventoryStore
    from invpro.repositories.sqlite_repo import SqliteRepository

    repo = SqliteRepository(tmp_path / name)
    repo.init_db()
    store = InventoryStore(repo)
    store.load()
    return store
