"""
Google Sheets Data Gateway

DESIGN DECISION: Google Sheets is used as the hosted backend because:
1. The household can look at (and fix) the ledger directly in Sheets
2. No database setup required
3. Built-in backup and sharing

TRADEOFFS:
- No server-side joins (owner names are joined in Python)
- No row-level security (owner scoping is enforced here, on every write)
- Last write wins; there is no locking or versioning
- Rows are addressed by position. Before each edit or delete the id cell
  at that position is read again, but a row can still move between that
  check and the write

Each table is one worksheet whose first row holds the column names.
"""

from datetime import date, datetime, timezone
from typing import Optional
from uuid import uuid4

import gspread
import structlog
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fundlove.config import GoogleSheetsSettings, get_settings
from fundlove.models.ledger import (
    OwnerDisplay,
    Profile,
    Target,
    TargetPatch,
    Transaction,
    TransactionKind,
    TransactionPatch,
    utc_now,
)
from fundlove.services.gateway.interface import (
    AuthorizationMismatchError,
    DataGatewayInterface,
    GatewayError,
    GatewayUnavailableError,
    NotFoundError,
    select_active_target,
)


logger = structlog.get_logger(__name__)


USER_COLUMNS = ["id", "name", "color", "avatar"]

TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "type",
    "amount",
    "note",
    "created_at",
]

TARGET_COLUMNS = [
    "id",
    "user_id",
    "target_amount",
    "target_months",
    "start_date",
    "updated_at",
]

# Reads are safe to repeat; writes are never retried automatically.
read_retry = retry(
    retry=retry_if_exception_type(GatewayUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and hands out (creating if needed) the three
    table worksheets.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise GatewayUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise GatewayUnavailableError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise GatewayUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_users_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.users_sheet_name, USER_COLUMNS, rows=100
        )

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS, rows=5000
        )

    def get_targets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.targets_sheet_name, TARGET_COLUMNS, rows=100
        )


class GoogleSheetsDataGateway(DataGatewayInterface):
    """
    Google Sheets implementation of the data gateway.

    One row per profile, transaction or target. Malformed rows are logged
    and left out of results rather than failing the whole read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _row_to_profile(row: list) -> Profile:
        return Profile(
            id=_safe_get(row, 0),
            name=_safe_get(row, 1),
            color=_safe_get(row, 2),
            avatar=_safe_get(row, 3) or None,
        )

    @staticmethod
    def _transaction_to_row(transaction: Transaction) -> list:
        return [
            transaction.id,
            transaction.owner_id,
            transaction.kind.value,
            str(transaction.amount),
            transaction.note or "",
            transaction.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_transaction(
        row: list,
        owners: dict[str, OwnerDisplay],
    ) -> Transaction:
        owner_id = _safe_get(row, 1)
        return Transaction(
            id=_safe_get(row, 0),
            owner_id=owner_id,
            kind=TransactionKind(_safe_get(row, 2)),
            amount=int(_safe_get(row, 3)),
            note=_safe_get(row, 4) or None,
            created_at=_parse_timestamp(_safe_get(row, 5)),
            owner=owners.get(owner_id),
        )

    @staticmethod
    def _target_to_row(target: Target) -> list:
        return [
            target.id,
            target.owner_id,
            str(target.target_amount),
            str(target.target_months),
            target.start_date.isoformat(),
            target.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_target(row: list) -> Target:
        return Target(
            id=_safe_get(row, 0),
            owner_id=_safe_get(row, 1),
            target_amount=int(_safe_get(row, 2)),
            target_months=int(_safe_get(row, 3)),
            start_date=date.fromisoformat(_safe_get(row, 4)),
            updated_at=_parse_timestamp(_safe_get(row, 5)),
        )

    def _read_rows(self, get_sheet, table: str) -> list[list]:
        """All non-empty data rows of a table (header excluded)."""
        try:
            all_rows = get_sheet().get_all_values()[1:]
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to read {table}: {e}")
        return [row for row in all_rows if row and row[0]]

    def _find_row(self, get_sheet, table: str, row_id: str) -> tuple[int, list]:
        """Locate a row by id, returning its 1-based sheet index."""
        try:
            all_rows = get_sheet().get_all_values()
        except GatewayError:
            raise
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to read {table}: {e}")

        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == row_id:
                return idx, row
        raise NotFoundError(f"{table.rstrip('s').capitalize()} not found: {row_id}")

    def _ensure_row_id(self, sheet, table: str, idx: int, row_id: str) -> None:
        """Confirm the row at `idx` still holds `row_id` right before writing."""
        try:
            current = sheet.cell(idx, 1).value
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to read {table}: {e}")
        if current != row_id:
            raise NotFoundError(
                f"{table.rstrip('s').capitalize()} moved or was removed: {row_id}"
            )

    @staticmethod
    def _write_cells(sheet, idx: int, first_col: int, values: list) -> None:
        """Write consecutive cells of one row in a single RAW request."""
        last_col = first_col + len(values) - 1
        sheet.update(
            range_name=f"{rowcol_to_a1(idx, first_col)}:{rowcol_to_a1(idx, last_col)}",
            values=[values],
            value_input_option="RAW",
        )

    def _load_owners(self) -> dict[str, OwnerDisplay]:
        owners = {}
        for row in self._read_rows(self._client.get_users_sheet, "users"):
            owners[row[0]] = OwnerDisplay(
                name=_safe_get(row, 1, "Unknown"),
                color=_safe_get(row, 2),
            )
        return owners

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @read_retry
    async def list_profiles(self) -> list[Profile]:
        profiles = []
        for row in self._read_rows(self._client.get_users_sheet, "users"):
            try:
                profiles.append(self._row_to_profile(row))
            except ValueError as e:
                logger.warning("malformed_row_skipped", table="users", error=str(e))
        profiles.sort(key=lambda p: p.name)
        return profiles

    @read_retry
    async def get_profile(self, profile_id: str) -> Profile:
        _, row = self._find_row(self._client.get_users_sheet, "users", profile_id)
        try:
            return self._row_to_profile(row)
        except ValueError as e:
            raise NotFoundError(f"Profile row is malformed: {profile_id}") from e

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @read_retry
    async def list_transactions(self) -> list[Transaction]:
        owners = self._load_owners()
        transactions = []
        for row in self._read_rows(self._client.get_transactions_sheet, "transactions"):
            try:
                transactions.append(self._row_to_transaction(row, owners))
            except ValueError as e:
                logger.warning(
                    "malformed_row_skipped",
                    table="transactions",
                    row_id=row[0],
                    error=str(e),
                )

        # Newest first
        transactions.sort(key=lambda t: t.created_at, reverse=True)
        return transactions

    async def insert_transaction(
        self,
        owner_id: str,
        kind: TransactionKind,
        amount: int,
        note: Optional[str] = None,
    ) -> Transaction:
        owner = await self.get_profile(owner_id)
        transaction = Transaction(
            id=str(uuid4()),
            owner_id=owner_id,
            kind=kind,
            amount=amount,
            note=note,
            created_at=utc_now(),
            owner=OwnerDisplay(name=owner.name, color=owner.color),
        )
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(
                self._transaction_to_row(transaction),
                value_input_option="RAW",
            )
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to save transaction: {e}")
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        owner_id: str,
        patch: TransactionPatch,
    ) -> None:
        get_sheet = self._client.get_transactions_sheet
        idx, row = self._find_row(get_sheet, "transactions", transaction_id)
        if _safe_get(row, 1) != owner_id:
            raise AuthorizationMismatchError(
                f"Transaction {transaction_id} is not owned by {owner_id}"
            )

        try:
            existing = self._row_to_transaction(row, {})
        except ValueError as e:
            raise NotFoundError(f"Transaction row is malformed: {transaction_id}") from e
        updated = Transaction.model_validate(
            {**existing.model_dump(), **patch.changes()}
        )
        new_row = self._transaction_to_row(updated)

        sheet = get_sheet()
        self._ensure_row_id(sheet, "transactions", idx, transaction_id)
        try:
            # Only type, amount and note (columns 3-5) are editable
            self._write_cells(sheet, idx, 3, new_row[2:5])
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to update transaction: {e}")

    async def delete_transaction(self, transaction_id: str, owner_id: str) -> None:
        get_sheet = self._client.get_transactions_sheet
        idx, row = self._find_row(get_sheet, "transactions", transaction_id)
        if _safe_get(row, 1) != owner_id:
            raise AuthorizationMismatchError(
                f"Transaction {transaction_id} is not owned by {owner_id}"
            )
        sheet = get_sheet()
        self._ensure_row_id(sheet, "transactions", idx, transaction_id)
        try:
            sheet.delete_rows(idx)
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to delete transaction: {e}")

    # -------------------------------------------------------------------------
    # Targets
    # -------------------------------------------------------------------------

    @read_retry
    async def get_active_target(self) -> Target:
        targets = []
        for row in self._read_rows(self._client.get_targets_sheet, "targets"):
            try:
                targets.append(self._row_to_target(row))
            except ValueError as e:
                logger.warning(
                    "malformed_row_skipped",
                    table="targets",
                    row_id=row[0],
                    error=str(e),
                )

        target = select_active_target(targets)
        if target is None:
            raise NotFoundError("No target configured")
        return target

    async def insert_target(
        self,
        owner_id: str,
        target_amount: int,
        target_months: int,
        start_date: date,
    ) -> Target:
        target = Target(
            id=str(uuid4()),
            owner_id=owner_id,
            target_amount=target_amount,
            target_months=target_months,
            start_date=start_date,
            updated_at=utc_now(),
        )
        try:
            sheet = self._client.get_targets_sheet()
            sheet.append_row(self._target_to_row(target), value_input_option="RAW")
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to save target: {e}")
        return target

    async def update_target(self, target_id: str, patch: TargetPatch) -> None:
        get_sheet = self._client.get_targets_sheet
        idx, row = self._find_row(get_sheet, "targets", target_id)
        new_row = [
            row[0],
            _safe_get(row, 1),
            str(patch.target_amount),
            str(patch.target_months),
            patch.start_date.isoformat(),
            patch.updated_at.isoformat(),
        ]
        sheet = get_sheet()
        self._ensure_row_id(sheet, "targets", idx, target_id)
        try:
            self._write_cells(sheet, idx, 3, new_row[2:])
        except Exception as e:
            raise GatewayUnavailableError(f"Failed to update target: {e}")
