"""Settings domain schemas"""

from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_SETTINGS = {
    "labor_rate_hourly": 15.0,
    "profit_margin_percent": 30.0,
    "iva_percent": 10.0,
    "rent_monthly": 0.0,
    "electricity_price_kwh": 0.15,
    "gas_price_unit": 0.06,
    "water_price_unit": 2.0,
    "other_monthly_overhead": 50.0,
    "overhead_markup_percent": 20.0,
}

# Request field -> column
SETTINGS_FIELDS = {
    "laborRateHourly": "labor_rate_hourly",
    "profitMarginPercent": "profit_margin_percent",
    "ivaPercent": "iva_percent",
    "rentMonthly": "rent_monthly",
    "electricityPriceKwh": "electricity_price_kwh",
    "gasPriceUnit": "gas_price_unit",
    "waterPriceUnit": "water_price_unit",
    "otherMonthlyOverhead": "other_monthly_overhead",
    "overheadMarkupPercent": "overhead_markup_percent",
}


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields keep their value"""

    laborRateHourly: Optional[float] = Field(None, gt=0)
    profitMarginPercent: Optional[float] = Field(None, ge=0)
    ivaPercent: Optional[float] = Field(None, ge=0)
    rentMonthly: Optional[float] = Field(None, ge=0)
    electricityPriceKwh: Optional[float] = Field(None, ge=0)
    gasPriceUnit: Optional[float] = Field(None, ge=0)
    waterPriceUnit: Optional[float] = Field(None, ge=0)
    otherMonthlyOverhead: Optional[float] = Field(None, ge=0)
    overheadMarkupPercent: Optional[float] = Field(None, ge=0)


class SettingsResponse(BaseModel):
    id: int
    businessId: int
    laborRateHourly: float
    profitMarginPercent: float
    ivaPercent: float
    rentMonthly: float
    electricityPriceKwh: float
    gasPriceUnit: float
    waterPriceUnit: float
    otherMonthlyOverhead: float
    overheadMarkupPercent: float
