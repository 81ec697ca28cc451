"""dom_scout.parser: Разбор HTML-разметки и извлечение inline-скриптов."""

from .script_extractor import ScriptExtractor, extract_scripts

__all__ = ["ScriptExtractor", "extract_scripts"]
