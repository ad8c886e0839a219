"""Imports every model so Base.metadata knows the full schema."""

from boxoffice.service.checkout.driven_adapter.model.inventory_unit_model import (  # noqa: F401
    InventoryUnitModel,
)
from boxoffice.service.checkout.driven_adapter.model.promo_code_model import (  # noqa: F401
    PromoCodeModel,
)
from boxoffice.service.checkout.driven_adapter.model.purchase_intent_model import (  # noqa: F401
    PurchaseIntentModel,
)
from boxoffice.service.settlement.driven_adapter.model.ledger_entry_model import (  # noqa: F401
    LedgerEntryModel,
)
from boxoffice.service.settlement.driven_adapter.model.payout_model import (  # noqa: F401
    PayoutModel,
)
from boxoffice.service.settlement.driven_adapter.model.seller_model import (  # noqa: F401
    SellerBankAccountModel,
    SellerModel,
)
from boxoffice.service.shared_kernel.driven_adapter.model.audit_log_model import (  # noqa: F401
    AuditLogModel,
)
