"""mvn-settings-provider: supply Maven settings.xml files with injected credentials."""

__version__ = "0.1.0"
