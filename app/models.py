from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Stored values match the labels shown in the dashboard
ORDER_STATUSES = ["Pendiente", "En Preparación", "Listo", "Entregado"]
PAYMENT_STATUSES = ["Pendiente", "Parcial", "Pagado", "Cancelado"]
PAYMENT_METHODS = ["Efectivo", "Tarjeta", "Transferencia Bancaria", "Bizum"]
PRODUCT_TYPES = ["Tarta", "Galletas", "Cupcakes", "Macarons", "Otros"]
INGREDIENT_UNITS = ["g", "kg", "ml", "l", "unidad", "docena"]

TEAM_ROLES = ["OWNER", "ADMIN", "EDITOR"]
INVITABLE_ROLES = ["ADMIN", "EDITOR"]
INVITATION_STATUSES = ["PENDING", "ACCEPTED", "CANCELLED"]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    auth_uid = Column(String(255), unique=True, index=True, nullable=False)  # "sub" of the session token
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    image = Column(String(500), nullable=True)
    is_super_admin = Column(Boolean, default=False, nullable=False)
    # Active business for the dashboard session
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", foreign_keys=[business_id])
    memberships = relationship("TeamMember", back_populates="user", passive_deletes=True)


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    owner_user_id = Column(Integer, nullable=True, index=True)  # mirrors the OWNER membership
    logo_url = Column(String(500), nullable=True)

    # Stripe subscription state, written by the webhook handler
    stripe_customer_id = Column(String(255), unique=True, nullable=True)
    stripe_subscription_id = Column(String(255), unique=True, nullable=True)
    stripe_price_id = Column(String(255), nullable=True)
    stripe_current_period_end = Column(DateTime, nullable=True)
    subscription_status = Column(String(50), nullable=True)  # active, trialing, past_due, canceled
    is_lifetime = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    members = relationship(
        "TeamMember", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    invitations = relationship(
        "Invitation", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    customers = relationship(
        "Customer", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    orders = relationship(
        "Order", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    settings = relationship(
        "BusinessSettings",
        back_populates="business",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    ingredient_prices = relationship(
        "IngredientPrice", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    recipes = relationship(
        "Recipe", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )
    product_types = relationship(
        "ProductType", back_populates="business", cascade="all, delete-orphan", passive_deletes=True
    )


class TeamMember(Base):
    __tablename__ = "team_members"
    __table_args__ = (UniqueConstraint("user_id", "business_id", name="user_business_unique_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(20), nullable=False, default="EDITOR")  # OWNER, ADMIN, EDITOR
    joined_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="memberships")
    business = relationship("Business", back_populates="members")


class Invitation(Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(20), nullable=False)  # ADMIN, EDITOR
    invited_by_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING")
    token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="invitations")
    invited_by = relationship("User")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    instagram_handle = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    registration_date = Column(DateTime, server_default=func.now())
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="customers")
    # Customers with orders cannot be deleted; never null out order.customer_id
    orders = relationship("Order", back_populates="customer", passive_deletes="all")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("business_id", "business_order_number", name="business_order_number_idx"),
    )

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id = Column(
        Integer, ForeignKey("customers.id"), nullable=False, index=True
    )
    business_order_number = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    order_date = Column(DateTime, server_default=func.now())
    delivery_date = Column(DateTime, nullable=True)
    order_status = Column(String(50), nullable=False, default="Pendiente")
    product_type = Column(String(100), nullable=False)
    customization_details = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    size_or_weight = Column(String(100), nullable=True)
    flavor = Column(String(255), nullable=True)
    allergy_information = Column(Text, nullable=True)
    total_price = Column(Float, nullable=False)
    deposit_amount = Column(Float, nullable=False, default=0)
    payment_status = Column(String(50), nullable=False, default="Pendiente")
    payment_method = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    order_history = Column(JSON, default=list)  # [{"status", "timestamp", "userId"}]
    images = Column(JSON, default=list)  # [{"id", "url"}] ImageKit files
    google_calendar_event_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="orders")
    customer = relationship("Customer", back_populates="orders")


class BusinessSettings(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    labor_rate_hourly = Column(Float, nullable=False, default=15)
    profit_margin_percent = Column(Float, nullable=False, default=30)
    iva_percent = Column(Float, nullable=False, default=10)
    rent_monthly = Column(Float, nullable=False, default=0)
    electricity_price_kwh = Column(Float, nullable=False, default=0.15)
    gas_price_unit = Column(Float, nullable=False, default=0.06)
    water_price_unit = Column(Float, nullable=False, default=2.0)
    other_monthly_overhead = Column(Float, nullable=False, default=50)
    overhead_markup_percent = Column(Float, nullable=False, default=20)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="settings")


class IngredientPrice(Base):
    __tablename__ = "ingredient_prices"
    __table_args__ = (UniqueConstraint("business_id", "name", name="business_ingredient_name_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    unit = Column(String(20), nullable=False)  # g, kg, ml, l, unidad, docena
    price_per_unit = Column(Float, nullable=False)
    supplier = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="ingredient_prices")


class Recipe(Base):
    __tablename__ = "recipes"
    __table_args__ = (UniqueConstraint("business_id", "name", name="business_recipe_name_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    product_type = Column(String(100), nullable=False)
    base_labor_hours = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="recipes")
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeIngredient.id",
    )


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id = Column(
        Integer, ForeignKey("ingredient_prices.id"), nullable=False, index=True
    )
    quantity = Column(Float, nullable=False)
    unit = Column(String(20), nullable=False)

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("IngredientPrice")


class ProductType(Base):
    __tablename__ = "product_types"
    __table_args__ = (UniqueConstraint("business_id", "name", name="business_product_type_name_idx"),)

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(
        Integer, ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    business = relationship("Business", back_populates="product_types")
