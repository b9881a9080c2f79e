"""Source column aliases per logical order attribute.

The WMS exposes the same attribute under different column names depending
on which view or procedure produced the row.  Each tuple is an ordered
priority list: the first alias present with a usable value wins, no matter
how the source row's keys are ordered.
"""

from __future__ import annotations

from types import MappingProxyType

ORDER_KEY = ("NarID", "NarId", "ID", "Id")
NUMERIC_ORDER_ID = ("OrderId", "NarID", "NarId")
ORDER_TYPE_CODE = ("Sifra_Nar", "OrderTypeCode", "OrderType")
ORDER_NUMBER = ("OrderNumber", "NarNr", "OrderNo", "Broj_Nar", "Reference", "PurchaseOrder")
CUSTOMER_CODE = ("CustomerCode", "Sifra_Kup", "ClientCode")
CUSTOMER_NAME = ("CustomerName", "ImeKup", "Customer")
IMPORTER = ("Importer", "SupplierName", "Supplier", "Client")
ARTICLE = ("Article", "ArticleCode", "Artikulli", "ItemCode", "Sku", "Sifra_Art")
# "Description" is the comment source, so it is not an article alias here
ARTICLE_DESCRIPTION = (
    "ArticleDescription",
    "ArticleName",
    "ArtikullPershkrimi",
    "ItemDescription",
    "ImeArt",
)
ARTICLE_COUNT = ("ArticleCount", "OrderedArticles", "QuantityArticles", "Articles", "TotalArticles")
BOX_COUNT = ("BoxCount", "OrderedBoxes", "QuantityBoxes", "NumriPakove", "Boxes", "TotalBoxes")
PALLET_COUNT = ("PalletCount", "OrderedPallets", "NumriPaletave", "Pallets", "TotalPallets")
ORDER_DATE = ("OrderDate", "Datum_Nar", "DocumentDate")
ARRIVAL_DATE = (
    "ArrivalDate",
    "ExpectedArrivalDate",
    "DataArritjes",
    "ExpectedDate",
    "Arrival_Date",
    "Dat_Ocek",
)
IS_REALIZED = ("IsRealized", "Realiziran")
ORDER_STATUS = ("OrderStatus", "Stat_Nar", "Status")
COMMENT = ("Comment", "Description", "Opis", "Notes", "Remark", "Shenime", "Remarks")
SOURCE_REFERENCE = ("SourceReference", "Z_KogaDosol")
SOURCE_UPDATED_AT = ("LastModified", "LastUpdate", "LastUpdated", "UpdatedAt", "ModifiedDate")
SCHEDULED_START = ("ScheduledStart", "Poc_Vreme_Zadad")
ORIGINAL_ORDER_NUMBER = ("OriginalOrderNumber", "Originalen_Broj_Naracka")
CAN_PROCEED = ("CanProceed", "Moze_Broj")

ALIASES = MappingProxyType(
    {
        "order_key": ORDER_KEY,
        "numeric_order_id": NUMERIC_ORDER_ID,
        "order_type_code": ORDER_TYPE_CODE,
        "order_number": ORDER_NUMBER,
        "customer_code": CUSTOMER_CODE,
        "customer_name": CUSTOMER_NAME,
        "importer": IMPORTER,
        "article": ARTICLE,
        "article_description": ARTICLE_DESCRIPTION,
        "article_count": ARTICLE_COUNT,
        "box_count": BOX_COUNT,
        "pallet_count": PALLET_COUNT,
        "order_date": ORDER_DATE,
        "arrival_date": ARRIVAL_DATE,
        "is_realized": IS_REALIZED,
        "order_status": ORDER_STATUS,
        "comment": COMMENT,
        "source_reference": SOURCE_REFERENCE,
        "source_updated_at": SOURCE_UPDATED_AT,
        "scheduled_start": SCHEDULED_START,
        "original_order_number": ORIGINAL_ORDER_NUMBER,
        "can_proceed": CAN_PROCEED,
    }
)
