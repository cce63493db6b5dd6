from __future__ import annotations

import logging
from typing import Union

from invpro.domain.errors import ValidationError
from invpro.domain.models import BusinessInfo, record_from_dict, field_names

log = logging.getLogger(__name__)


class BusinessService:
    def __init__(self, store):
        self.store = store

    def get_business_info(self) -> BusinessInfo:
        return self.store.business_info()

    def update_business_info(self, info: Union[BusinessInfo, dict]) -> BusinessInfo:
        """Replace the business record wholesale; missing keys fall back to defaults."""
        if isinstance(info, dict):
            unknown = set(info) - set(field_names(BusinessInfo))
            if unknown:
                raise ValidationError(f"Unknown business fields: {', '.join(sorted(unknown))}")
            info = record_from_dict(BusinessInfo, {k: str(v or "").strip() for k, v in info.items()})
        if not info.name.strip():
            raise ValidationError("Business name is required.")

        with self.store.transaction() as uow:
            uow.put_business_info(info)
        log.info("business_info_updated name=%s", info.name)
        return info
