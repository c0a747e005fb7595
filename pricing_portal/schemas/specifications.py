from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


# ---------- Future-X style single-vision lenses (stock / laboratory) ----------

class StockLensSpecification(BaseModel):
    kind: Literal["stock_lens"] = "stock_lens"
    production: Literal["stock", "laboratory"] = "stock"
    spherical_min: float = -4.0
    spherical_max: float = 4.0
    cylindrical_min: float = -2.0
    cylindrical_max: float = 0.0
    bases: List[str] = []
    diameter: str = "70mm"
    materials: List[str] = []
    treatment: Optional[str] = None
    features: List[str] = []
    delivery_time: Optional[str] = None

    @model_validator(mode="after")
    def check_ranges(self):
        if self.spherical_min > self.spherical_max:
            raise ValueError("spherical_min must not exceed spherical_max")
        if self.cylindrical_min > self.cylindrical_max:
            raise ValueError("cylindrical_min must not exceed cylindrical_max")
        return self

    def spherical_range(self) -> str:
        return f"Sph {self.spherical_min:+.2f} to {self.spherical_max:+.2f}"

    def cylindrical_range(self) -> str:
        if self.cylindrical_min == self.cylindrical_max:
            return f"Cyl {self.cylindrical_min:.2f}"
        return f"Cyl {self.cylindrical_min:.2f} to {self.cylindrical_max:.2f}"


# ---------- Finished lenses with a sphere x cylinder availability grid ----------

class GridAxis(BaseModel):
    start: float
    step: float = Field(gt=0)
    count: int = Field(ge=1)

    def values(self) -> List[float]:
        return [round(self.start + i * self.step, 2) for i in range(self.count)]


class FinishedLensSpecification(BaseModel):
    kind: Literal["finished_lens"] = "finished_lens"
    sphere: GridAxis
    cylinder: GridAxis
    diameters: List[str] = []
    materials: List[str] = []
    delivery_time: Optional[str] = None


ProductSpecification = Annotated[
    Union[StockLensSpecification, FinishedLensSpecification],
    Field(discriminator="kind"),
]
