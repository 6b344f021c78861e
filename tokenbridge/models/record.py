"""
tokenbridge/models/record.py
Shared dataclass schema. Signer, issuer, client and API layer
use these types. Do not add logic here: data and (de)serialization only.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SigningRequest:
    """Inputs to one signing call. secret_key is HMAC key material only."""
    application_id: str
    dataset_id:     str
    access_key_id:  str                  # public identifier, signed as "accessKey"
    secret_key:     str = field(repr=False)
    timestamp:      Optional[int] = None  # ms since epoch; None → now


@dataclass
class SignedToken:
    """Short-lived bearer token. token and timestamp must travel together."""
    token:      str
    timestamp:  int
    expires_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token":     self.token,
            "timestamp": self.timestamp,
            "expiresAt": self.expires_at,
        }


@dataclass
class Paging:
    page_size:    int = 10
    total_count:  int = 0
    current_page: int = 1


@dataclass
class TableColumn:
    title:      str
    data_index: str


@dataclass
class ListResponse:
    """One page of tabular data as returned by the data service."""
    paging:        Paging                 = field(default_factory=Paging)
    table_data:    List[Dict[str, Any]]   = field(default_factory=list)
    table_columns: List[TableColumn]      = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ListResponse":
        data   = data or {}
        paging = data.get("paging") or {}
        rows   = data.get("tableData") or []
        if not isinstance(rows, list):
            raise TypeError(f"tableData must be a list, got {type(rows).__name__}")
        return cls(
            paging = Paging(
                page_size    = int(paging.get("pageSize", 10) or 0),
                total_count  = int(paging.get("totalCount", 0) or 0),
                current_page = int(paging.get("currentPage", 1) or 0),
            ),
            table_data    = list(rows),
            table_columns = [
                TableColumn(title=str(c.get("title", "")), data_index=str(c.get("dataIndex", "")))
                for c in (data.get("tableColumns") or [])
                if isinstance(c, dict)
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paging": {
                "pageSize":    self.paging.page_size,
                "totalCount":  self.paging.total_count,
                "currentPage": self.paging.current_page,
            },
            "tableData":    self.table_data,
            "tableColumns": [
                {"title": c.title, "dataIndex": c.data_index} for c in self.table_columns
            ],
        }
