"""Base común de los schemas que el frontend envía en camelCase."""
from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Acepta `isPublic` o `is_public`; se vuelca con alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Campos de un PATCH que un `null` explícito no debe pisar
    non_nullable: ClassVar[Tuple[str, ...]] = ()

    def to_record(self) -> Dict[str, Any]:
        """Sólo los campos enviados, con nombres camelCase."""
        record = self.model_dump(by_alias=True, exclude_unset=True)
        for name in self.non_nullable:
            alias = to_camel(name)
            if alias in record and record[alias] is None:
                del record[alias]
        return record
