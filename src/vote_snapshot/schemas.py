"""
Pydantic schemas for FIO chain API responses.

Only the fields the snapshot reads are declared. Anything else a node
returns is ignored, so a node adding or retyping an unrelated field does
not fail the call.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ==================
# get_table_rows
# ==================

class TableRowsResponse(BaseModel):
    """Generic envelope of a get_table_rows response."""
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    more: bool = False


class VoterRow(BaseModel):
    """Row of the eosio voters table, amounts still in fixed-point units."""
    id: int
    fioaddress: str = ""
    owner: str
    proxy: str = ""
    producers: List[str] = Field(default_factory=list)
    last_vote_weight: Decimal = Decimal(0)
    proxied_vote_weight: Decimal = Decimal(0)
    is_proxy: bool = False
    is_auto_proxy: bool = False


class VotersPage(BaseModel):
    """One page of the voters table scan."""
    rows: List[VoterRow]
    more: bool = False


class AccountMapRow(BaseModel):
    """Row of the fio.address accountmap table."""
    account: str
    clientkey: str


class LockedTokensRow(BaseModel):
    """Row of the eosio lockedtokens table."""
    owner: str
    grant_type: int
    remaining_locked_amount: int = 0


# ==================
# get_fio_balance
# ==================

class FioBalance(BaseModel):
    """Balance response; amounts are in SUFs (1 FIO = 10^9 SUF)."""
    balance: int
    available: Optional[int] = None


# ==================
# get_producers
# ==================

class ProducerRow(BaseModel):
    """Producer entry as returned by get_producers."""
    owner: str
    fio_address: str = ""
    total_votes: Decimal = Decimal(0)


class ProducersResponse(BaseModel):
    """Envelope of a get_producers response."""
    producers: List[ProducerRow]
