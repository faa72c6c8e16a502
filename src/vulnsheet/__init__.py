"""vulnsheet — Tidy merged vulnerability-scan workbooks for review."""

__version__ = "0.3.1"

REQUIRED_SUFFIX = ".xlsx"

RISK_LEVELS: list[str] = ["Critical", "High", "Low", "Medium"]
