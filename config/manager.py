"""Einstellungsmanager: Laden, Speichern und Anzeigen der lokalen Einstellungen.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren. Die
Buchungsrichtlinien (AppConfig) liegen dagegen im Datenbestand.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import AppConfig, Settings

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


_YAML_HEADER = f"""\
# ============================================
# Raumbuchung — lokale Einstellungen
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_FIELD_COMMENTS = {
    "data_dir": "Verzeichnis des Datenbestands (eine JSON-Datei pro Sammlung)",
    "log_level": "DEBUG, INFO, WARNING oder ERROR",
    "date_format": "strftime-Format für Datumsangaben in Tabellen",
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "settings.yaml"

    def __init__(self, path: Optional[Path] = None):
        if path is not None:
            self.DEFAULT_CONFIG = Path(path)

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Einstellungsdatei existiert."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> Settings:
        """Lade Einstellungen aus YAML; ohne Datei gelten die Defaults."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            return Settings()
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return Settings.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Einstellungsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    # ─── Speichern ───

    def save(self, settings: Settings, path: Optional[Path] = None) -> Path:
        """Speichere Einstellungen als YAML mit Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(settings)
        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)
        return target

    def _build_commented_yaml(self, settings: Settings) -> CommentedMap:
        """Baut die YAML-Struktur mit Zeilenkommentaren auf."""
        cm = CommentedMap(json.loads(settings.model_dump_json()))
        for field, comment in _FIELD_COMMENTS.items():
            if field in cm:
                cm.yaml_add_eol_comment(comment, field)
        return cm

    # ─── Anzeige ───

    def show(self, settings: Settings, policy: Optional[AppConfig] = None) -> None:
        """Gibt Einstellungen und Richtlinien als Tabellen aus."""
        table = Table(title="Lokale Einstellungen", box=box.ROUNDED)
        table.add_column("Parameter", style="bold")
        table.add_column("Wert")
        for k, v in settings.model_dump().items():
            table.add_row(k, str(v))
        console.print(table)

        if policy is None:
            return
        table2 = Table(title="Buchungsrichtlinien", box=box.ROUNDED)
        table2.add_column("Parameter", style="bold")
        table2.add_column("Wert")
        table2.add_column("Beschreibung", style="dim")
        for name, field in AppConfig.model_fields.items():
            table2.add_row(name, str(getattr(policy, name)), field.description or "")
        console.print(table2)
