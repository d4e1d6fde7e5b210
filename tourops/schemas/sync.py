from pydantic import BaseModel, Field


class SyncStreamRequest(BaseModel):
    spreadsheet_id: str = Field(default="", alias="spreadsheetId")
    sheet_name: str = Field(default="", alias="sheetName")
    target_table: str = Field(default="", alias="targetTable")
    column_mapping: dict[str, str] = Field(default_factory=dict, alias="columnMapping")
    enable_incremental_sync: bool = Field(default=False, alias="enableIncrementalSync")
    truncate_table: bool = Field(default=False, alias="truncateTable")

    model_config = {"populate_by_name": True}


class SheetsRequest(BaseModel):
    spreadsheet_id: str = Field(default="", alias="spreadsheetId")

    model_config = {"populate_by_name": True}


class SheetInfoOut(BaseModel):
    name: str
    row_count: int
    column_count: int


class SheetsResponse(BaseModel):
    success: bool = True
    spreadsheet_id: str
    sheets: list[SheetInfoOut]


class ColumnOut(BaseModel):
    name: str
    type: str
    nullable: bool
    primary_key: bool


class TableSchemaOut(BaseModel):
    success: bool = True
    table: str
    primary_key: str
    columns: list[ColumnOut]


class SuggestMappingRequest(BaseModel):
    target_table: str = Field(alias="targetTable")
    sheet_columns: list[str] = Field(default_factory=list, alias="sheetColumns")

    model_config = {"populate_by_name": True}


class SuggestMappingResponse(BaseModel):
    success: bool = True
    table: str
    mapping: dict[str, str]


class SyncHistoryOut(BaseModel):
    success: bool = True
    table: str
    spreadsheet_id: str | None = None
    last_sync_time: str | None = None
    last_status: str | None = None
