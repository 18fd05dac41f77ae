"""
Material model.

Material = Raw or intermediate input consumed by recipes.

Recipes reference materials through RecipeItem (PROTECT). A material
still referenced by any item is never deleted: Material.retire()
deactivates it instead.
"""

import logging
from decimal import Decimal

from django.db import models, transaction
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from formulary.validators import check_required_text, coerce_decimals, non_negative

logger = logging.getLogger(__name__)


class MaterialCategory(models.TextChoices):
    """Material classification."""

    RAW_MATERIAL = "raw_material", _("Matéria-prima")
    CHEMICAL = "chemical", _("Químico")
    PACKAGING = "packaging", _("Embalagem")
    SEMI_FINISHED = "semi_finished", _("Semiacabado")
    CONSUMABLE = "consumable", _("Consumível")
    OTHER = "other", _("Outro")


class Material(models.Model):
    """
    Insumo usado nas receitas.

    cost_per_unit is expressed in the material's standard unit; recipe
    items convert their own unit with RecipeItem.conversion_ratio.
    """

    name = models.CharField(
        unique=True,
        max_length=100,
        verbose_name=_("Nome"),
    )
    description = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name=_("Descrição"),
    )
    category = models.CharField(
        max_length=20,
        choices=MaterialCategory.choices,
        default=MaterialCategory.RAW_MATERIAL,
        db_index=True,
        verbose_name=_("Categoria"),
    )
    unit = models.CharField(
        max_length=20,
        verbose_name=_("Unidade"),
        help_text=_("Unidade padrão de custo (g, kg, L, un...)"),
    )
    cost_per_unit = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        validators=[non_negative],
        verbose_name=_("Custo por Unidade"),
    )
    supplier = models.CharField(
        max_length=200,
        blank=True,
        default="",
        verbose_name=_("Fornecedor"),
    )
    stock_quantity = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        validators=[non_negative],
        verbose_name=_("Estoque"),
    )
    minimum_stock = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        validators=[non_negative],
        verbose_name=_("Estoque Mínimo"),
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
        db_table = "formulary_material"
        verbose_name = _("Material")
        verbose_name_plural = _("Materiais")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="formulary_material_active_idx"),
        ]

    def clean(self):
        super().clean()
        check_required_text(self, "name", "unit")

    def save(self, *args, **kwargs):
        coerce_decimals(self)
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.name

    @property
    def is_below_minimum(self) -> bool:
        return self.stock_quantity < self.minimum_stock

    def is_in_use(self) -> bool:
        """True if any recipe item references this material."""
        from formulary.models.recipe import RecipeItem

        return RecipeItem.objects.filter(material_id=self.pk).exists()

    def recipes_using(self):
        """Recipes with an item for this material, by product then name."""
        from formulary.models.recipe import Recipe

        return (
            Recipe.objects.filter(items__material_id=self.pk)
            .select_related("product")
            .distinct()
            .order_by("product__name", "name", "version")
        )

    def retire(self) -> bool:
        """
        Delete the material, or deactivate it if a recipe still uses it.

        Both outcomes return True: callers cannot tell a hard delete
        from a soft deactivation by the return value.
        """
        from formulary.signals import material_retired

        with transaction.atomic():
            # Lock the row so an item cannot start referencing it mid-check
            Material.objects.select_for_update().filter(pk=self.pk).first()
            in_use = self.is_in_use()

            if in_use:
                self.is_active = False
                self.save(update_fields=["is_active", "updated_at"])
                logger.warning(
                    f"Material {self.name} is used by recipes, deactivated instead of deleted",
                    extra={"material": self.pk},
                )
            else:
                material_id = self.pk
                self.delete()
                logger.info(
                    f"Material {self.name} deleted",
                    extra={"material": material_id},
                )

        material_retired.send(
            sender=self.__class__, material=self, hard_deleted=not in_use
        )
        return True
