"""
CSV upload parsing shared by the employee and important-date imports (pandas).
"""
import re
from io import BytesIO
from typing import Dict, List, Mapping, Optional

import pandas as pd

from app.exceptions import ValidationFailed


def normalize_header(header: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Lowercase, collapse whitespace to "_", then apply aliases."""
    key = re.sub(r"\s+", "_", str(header).strip().lower())
    return (aliases or {}).get(key, key)


def read_csv_rows(content: bytes, aliases: Optional[Mapping[str, str]] = None) -> List[Dict[str, str]]:
    """Parse CSV bytes into header-normalised row dicts. Cells are strings; blanks are ""."""
    try:
        df = pd.read_csv(BytesIO(content), dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationFailed(f"CSV parsing error: {e}")
    df.columns = [normalize_header(c, aliases) for c in df.columns]
    rows = df.to_dict(orient="records")
    return [r for r in rows if any(str(v).strip() for v in r.values())]
