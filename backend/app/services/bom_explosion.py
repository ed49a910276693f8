"""
BOM Explosion Engine

Flattens a multi-level bill of materials into the total quantity of every
component needed to build a given quantity of an item.

For each BOM line:
    required = parent_quantity * quantity_per_unit * (1 + scrap_percentage / 100)

The component is recorded at that quantity and then exploded itself at the
same quantity, so scrap compounds down the tree. Components reached through
more than one branch are summed. No rounding is applied here.
"""
from collections import defaultdict
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from app.exceptions import BusinessRuleError, CyclicBOMError, ValidationError
from app.logging_config import get_logger
from app.services.mrp_data import CatalogReader

logger = get_logger(__name__)

HUNDRED = Decimal("100")


def to_decimal(value, field: str = "quantity") -> Decimal:
    """Coerce a numeric input to Decimal without going through float."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"{field} must be numeric", field=field, value=value)
    # NaN and Infinity parse but cannot be compared or stored
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field, value=value)
    return result


class BOMExplosionEngine:
    """Recursive BOM explosion over a catalog reader"""

    def __init__(self, catalog: CatalogReader, max_depth: int = 50):
        self.catalog = catalog
        self.max_depth = max_depth

    def explode(
        self,
        item_id: int,
        quantity,
        level: int = 0,
        path: Optional[List[int]] = None,
    ) -> Dict[int, Decimal]:
        """
        Explode item_id at quantity into {component_item_id: total_required}.

        Args:
            item_id: Item to explode
            quantity: Quantity of the item to build (must be >= 0)
            level: Current depth (0 = the item asked for)
            path: Ancestor item ids of this call, used for cycle detection

        Returns:
            Flat mapping of every component at every depth. An item with no
            active BOM (or one without lines) returns an empty mapping.

        Raises:
            ValidationError: quantity is negative
            CyclicBOMError: a component is one of its own ancestors
            BusinessRuleError: the tree is deeper than max_depth
        """
        quantity = to_decimal(quantity)
        if quantity < 0:
            raise ValidationError(
                "Explosion quantity cannot be negative",
                field="quantity",
                value=quantity,
            )
        if level > self.max_depth:
            raise BusinessRuleError(
                f"BOM for item {item_id} exceeds the maximum depth of {self.max_depth} levels",
                rule="max_bom_depth",
                details={"item_id": item_id, "max_depth": self.max_depth},
            )

        path = (path or []) + [item_id]
        requirements: Dict[int, Decimal] = defaultdict(Decimal)

        bom = self.catalog.find_active_bom(item_id)
        if bom is None or not bom.lines:
            return {}

        for line in bom.lines:
            component_id = line.component_item_id
            if component_id in path:
                logger.error(
                    "Cyclic BOM detected",
                    extra={"item_id": item_id, "component_item_id": component_id, "path": path},
                )
                raise CyclicBOMError(path + [component_id])

            scrap = to_decimal(line.scrap_percentage or 0, "scrap_percentage")
            required = quantity * to_decimal(line.quantity_per_unit, "quantity_per_unit") * (1 + scrap / HUNDRED)
            requirements[component_id] += required

            for sub_id, sub_qty in self.explode(component_id, required, level + 1, path).items():
                requirements[sub_id] += sub_qty

        return dict(requirements)
