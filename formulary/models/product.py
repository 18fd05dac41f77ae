"""
Product model.

Product = Finished good produced by one or more Recipes.
Deleting a Product deletes its Recipes (and their items).
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from formulary.validators import (
    check_required_text,
    coerce_decimals,
    non_negative,
    positive_minutes,
    positive_yield,
)


class ProductCategory(models.TextChoices):
    """Product classification."""

    FOOD = "food", _("Alimento")
    BEVERAGE = "beverage", _("Bebida")
    COSMETICS = "cosmetics", _("Cosmético")
    PHARMACEUTICAL = "pharmaceutical", _("Farmacêutico")
    CHEMICAL = "chemical", _("Químico")
    ELECTRONICS = "electronics", _("Eletrônico")
    MECHANICAL_PARTS = "mechanical_parts", _("Peças Mecânicas")
    OTHER = "other", _("Outro")


class Product(models.Model):
    """Produto acabado."""

    name = models.CharField(
        max_length=100,
        verbose_name=_("Nome"),
    )
    code = models.CharField(
        unique=True,
        max_length=50,
        verbose_name=_("Código"),
        help_text=_("Identificador único (ex: BREAD-001)"),
    )
    description = models.CharField(
        max_length=1000,
        blank=True,
        default="",
        verbose_name=_("Descrição"),
    )
    category = models.CharField(
        max_length=20,
        choices=ProductCategory.choices,
        default=ProductCategory.FOOD,
        db_index=True,
        verbose_name=_("Categoria"),
    )
    standard_yield = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        validators=[positive_yield],
        verbose_name=_("Rendimento Padrão"),
        help_text=_("Quantidade produzida por lote"),
    )
    yield_unit = models.CharField(
        max_length=20,
        verbose_name=_("Unidade de Rendimento"),
    )
    production_minutes = models.PositiveIntegerField(
        validators=[positive_minutes],
        verbose_name=_("Tempo de Produção (minutos)"),
    )
    standard_price = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        validators=[non_negative],
        verbose_name=_("Preço Padrão"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Ativo"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("criado em"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("atualizado em"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "formulary_product"
        verbose_name = _("Produto")
        verbose_name_plural = _("Produtos")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="formulary_product_active_idx"),
        ]

    def clean(self):
        super().clean()
        check_required_text(self, "name", "code", "yield_unit")

    def save(self, *args, **kwargs):
        coerce_decimals(self)
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"

    @property
    def primary_recipe(self):
        """The recipe currently designated as primary, or None."""
        return self.recipes.filter(is_primary=True).first()
