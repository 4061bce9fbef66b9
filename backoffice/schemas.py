from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class TakeoutIdResponse(BaseModel):
    takeout_id: str
    restaurant_id: str
    partition: Literal["trial", "prod"]


class TakeoutOrderItem(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: NonBlankStr
    name: NonBlankStr
    quantity: int = Field(default=1, gt=0)
    price: float = Field(default=0, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)


class TakeoutOrderCreate(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=120)
    customer_phone: Optional[str] = Field(default=None, max_length=32)
    notes: Optional[str] = Field(default=None, max_length=800)
    items: List[TakeoutOrderItem] = Field(default_factory=list)


class TakeoutOrderRecord(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: Optional[str] = None
    restaurant_id: str
    partition: Literal["trial", "prod"]
    takeout_id: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    status: str = "pending"
    type: Literal["takeout"] = "takeout"
    items: List[Dict[str, Any]] = Field(default_factory=list)
    subtotal: float = 0
    created_at: Optional[datetime] = None


class DishDescriptionInput(BaseModel):
    dish_name: str = Field(..., max_length=200, description="Name of the dish to describe")
    ingredients: List[str] = Field(default_factory=list, description="Main ingredients of the dish")

    @field_validator("ingredients")
    @classmethod
    def _drop_blank_ingredients(cls, value: List[str]) -> List[str]:
        return [entry.strip() for entry in value if entry and entry.strip()]


class DishDescriptionOutput(BaseModel):
    description: NonBlankStr


class PriceSuggestionInput(BaseModel):
    dish_name: str = Field(..., max_length=200)
    cost: float = Field(..., description="Total ingredient cost of the dish")


class PriceSuggestionOutput(BaseModel):
    suggested_price: float = Field(..., gt=0)

    @field_validator("suggested_price", mode="before")
    @classmethod
    def _round_to_whole(cls, value: Any) -> Any:
        # Rounded before the gt=0 check so 0.4 is rejected rather than stored as 0.
        if isinstance(value, bool):
            return value
        try:
            return float(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            return value


class InventoryItem(BaseModel):
    id: NonBlankStr
    name: NonBlankStr
    unit: str = ""


class RecipeSuggestionInput(BaseModel):
    inventory: List[InventoryItem] = Field(default_factory=list)


class SuggestedIngredient(BaseModel):
    item_name: str
    item_id: str
    quantity: float = Field(..., gt=0)
    unit: str = ""


class RecipeSuggestion(BaseModel):
    recipe_name: NonBlankStr
    ingredients: List[SuggestedIngredient] = Field(default_factory=list)


class RecipeSuggestionOutput(BaseModel):
    suggestions: List[RecipeSuggestion] = Field(default_factory=list)


class SalesLine(BaseModel):
    item_name: str
    quantity_sold: float = 0
    revenue: float = 0
    cost: float = 0


class MenuInsightsInput(BaseModel):
    sales: List[SalesLine] = Field(default_factory=list)


class MenuInsightsOutput(BaseModel):
    summary: NonBlankStr
    recommendations: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _strip_empty_recommendations(self) -> "MenuInsightsOutput":
        self.recommendations = [entry.strip() for entry in self.recommendations if entry and entry.strip()]
        return self
