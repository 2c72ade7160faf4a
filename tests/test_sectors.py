"""Unit tests for the sector catalogue."""

from pathlib import Path

from tweetletter import config
from tweetletter.sectors import find_sector, install_sectors, load_catalog
from tweetletter.store import DigestStore


def _write_catalog(tmp_path: Path) -> Path:
    path = tmp_path / "sectors.yml"
    path.write_text(
        "sectors:\n"
        "  - name: Finance\n"
        "    description: Markets\n"
        "    handles: ['@WSJ', 'https://x.com/FT', WSJ]\n"
        "  - name: Science\n"
        "    handles: [NASA]\n"
        "  - description: no name here\n"
        "  - just a string\n"
    )
    return path


class TestLoadCatalog:
    def test_parses_and_normalises(self, tmp_path: Path) -> None:
        catalog = load_catalog(_write_catalog(tmp_path))
        assert [s.name for s in catalog] == ["Finance", "Science"]
        assert catalog[0].handles == ["WSJ", "FT"]
        assert catalog[1].description == ""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_catalog(tmp_path / "nope.yml") == []

    def test_shipped_catalog(self) -> None:
        catalog = load_catalog(config.SECTORS_FILE)
        ai = find_sector(catalog, "ai & ml")
        assert ai is not None
        assert "OpenAI" in ai.handles


class TestInstallSectors:
    def test_install_named(self, tmp_path: Path) -> None:
        store = DigestStore(db_path=tmp_path / "t.sqlite3")
        catalog = load_catalog(_write_catalog(tmp_path))

        created = install_sectors(store, user_id=5, catalog=catalog, names=["science", "Unknown"])

        assert [s.name for s in created] == ["Science"]
        assert created[0].id is not None
        assert store.get_sector(created[0].id, user_id=5) == created[0]

    def test_install_all(self, tmp_path: Path) -> None:
        store = DigestStore(db_path=tmp_path / "t.sqlite3")
        catalog = load_catalog(_write_catalog(tmp_path))
        install_sectors(store, user_id=5, catalog=catalog)
        assert len(store.list_sectors(5)) == 2
