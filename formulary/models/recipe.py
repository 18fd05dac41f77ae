"""
Recipe and RecipeItem models.

Recipe = Versioned, costed formulation of a Product.
RecipeItem = One material's quantity within one recipe.

✅ Cost and primary rules live here:
- RecipeItem.save() recomputes the item cost from the material's current cost
- Recipe.update_cost() re-sums the items under a row lock
- Recipe.set_primary() demotes the product's other recipes atomically
"""

import logging
from decimal import Decimal

from django.db import models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from formulary.costing import item_cost, recipe_cost
from formulary.models.material import Material
from formulary.models.product import Product
from formulary.validators import (
    check_required_text,
    coerce_decimals,
    positive_quantity,
    positive_ratio,
    positive_yield,
)

logger = logging.getLogger(__name__)


class RecipeStatus(models.TextChoices):
    """Recipe status (no enforced transitions; any value may be set)."""

    DRAFT = "draft", _("Rascunho")
    PENDING_APPROVAL = "pending_approval", _("Aguardando Aprovação")
    APPROVED = "approved", _("Aprovada")
    PUBLISHED = "published", _("Publicada")
    INACTIVE = "inactive", _("Inativa")
    DEPRECATED = "deprecated", _("Obsoleta")


class RecipeItemType(models.TextChoices):
    """Role of a material inside a recipe."""

    MAIN_INGREDIENT = "main_ingredient", _("Ingrediente Principal")
    ADDITIVE = "additive", _("Aditivo")
    SEASONING = "seasoning", _("Tempero")
    PRESERVATIVE = "preservative", _("Conservante")
    COLORANT = "colorant", _("Corante")
    FRAGRANCE = "fragrance", _("Fragrância")
    CATALYST = "catalyst", _("Catalisador")
    OTHER = "other", _("Outro")


class Recipe(models.Model):
    """
    Receita (formulação) de um produto.

    (product, name, version) is unique. At most one recipe per product
    has is_primary=True. estimated_cost is derived: it is only written
    by update_cost().
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="recipes",
        verbose_name=_("Produto"),
    )
    name = models.CharField(
        max_length=150,
        verbose_name=_("Nome"),
    )
    version = models.CharField(
        max_length=20,
        verbose_name=_("Versão"),
        help_text=_("Ex: 1.0, 1.2"),
    )
    description = models.CharField(
        max_length=1000,
        blank=True,
        default="",
        verbose_name=_("Descrição"),
    )
    batch_yield = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        validators=[positive_yield],
        verbose_name=_("Rendimento do Lote"),
    )
    status = models.CharField(
        max_length=20,
        choices=RecipeStatus.choices,
        default=RecipeStatus.DRAFT,
        db_index=True,
        verbose_name=_("Status"),
    )
    is_primary = models.BooleanField(
        default=False,
        verbose_name=_("Principal"),
        help_text=_("Receita vigente do produto"),
    )
    instructions = models.CharField(
        max_length=2000,
        blank=True,
        default="",
        verbose_name=_("Modo de Preparo"),
    )
    estimated_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        editable=False,
        verbose_name=_("Custo Estimado"),
    )
    created_by = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name=_("Criado por"),
    )
    approved_by = models.CharField(
        max_length=100,
        blank=True,
        default="",
        verbose_name=_("Aprovado por"),
    )
    approved_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("aprovado em"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("criado em"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("atualizado em"))

    # History
    history = HistoricalRecords()

    class Meta:
        db_table = "formulary_recipe"
        verbose_name = _("Receita")
        verbose_name_plural = _("Receitas")
        ordering = ["product__name", "name"]
        unique_together = [["product", "name", "version"]]
        constraints = [
            models.UniqueConstraint(
                fields=["product"],
                condition=Q(is_primary=True),
                name="formulary_one_primary_recipe_per_product",
                violation_error_message=_("O produto já possui uma receita principal."),
            ),
        ]
        indexes = [
            models.Index(fields=["product", "is_primary"], name="formulary_recipe_primary_idx"),
        ]

    def clean(self):
        super().clean()
        check_required_text(self, "name", "version")

    def save(self, *args, **kwargs):
        coerce_decimals(self)
        if self.approved_by and self.approved_at is None:
            self.approved_at = timezone.now()
            update_fields = kwargs.get("update_fields")
            if update_fields is not None:
                kwargs["update_fields"] = {*update_fields, "approved_at"}
        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"

    # ══════════════════════════════════════════════════════════════
    # APPROVAL
    # ══════════════════════════════════════════════════════════════

    def assign_approver(self, approved_by: str) -> None:
        """Set (or clear) the approver; approved_at follows it."""
        self.approved_by = approved_by or ""
        self.approved_at = timezone.now() if self.approved_by else None

    # ══════════════════════════════════════════════════════════════
    # COST
    # ══════════════════════════════════════════════════════════════

    def calculate_cost(self) -> Decimal:
        """Sum of the current items' stored costs (read only)."""
        return recipe_cost(
            RecipeItem.objects.filter(recipe_id=self.pk).values_list(
                "estimated_cost", flat=True
            )
        )

    def update_cost(self) -> Decimal:
        """
        Recompute and persist estimated_cost.

        Locks the recipe row and re-reads the items inside the same
        transaction, so concurrent item mutations on this recipe cannot
        overwrite each other's contribution.
        """
        from formulary.signals import recipe_cost_changed

        with transaction.atomic():
            locked = Recipe.objects.select_for_update().get(pk=self.pk)
            previous = locked.estimated_cost
            total = locked.calculate_cost()

            locked.estimated_cost = total
            locked.save(update_fields=["estimated_cost", "updated_at"])

        self.estimated_cost = total
        self.updated_at = locked.updated_at

        if previous != total:
            logger.info(
                f"Recipe {self.pk} cost {previous} -> {total}",
                extra={
                    "recipe": self.pk,
                    "previous": str(previous),
                    "current": str(total),
                },
            )
            recipe_cost_changed.send(
                sender=self.__class__, recipe=self, previous=previous, current=total
            )

        return total

    # ══════════════════════════════════════════════════════════════
    # PRIMARY
    # ══════════════════════════════════════════════════════════════

    def demote_siblings(self) -> list["Recipe"]:
        """
        Clear is_primary on every other recipe of the same product.

        Must run inside a transaction. Locks every recipe of the product,
        this one included, in pk order.
        """
        recipes = (
            Recipe.objects.filter(product_id=self.product_id)
            .order_by("pk")
            .select_for_update()
        )
        demoted = []
        for other in recipes:
            if other.pk != self.pk and other.is_primary:
                other.is_primary = False
                other.save(update_fields=["is_primary", "updated_at"])
                demoted.append(other)
        return demoted

    def set_primary(self) -> list["Recipe"]:
        """
        Make this the product's only primary recipe.

        Idempotent. Returns the recipes that were demoted.
        """
        from formulary.signals import primary_recipe_changed

        with transaction.atomic():
            demoted = self.demote_siblings()
            self.is_primary = True
            self.save(update_fields=["is_primary", "updated_at"])

        logger.info(
            f"Recipe {self} is now primary for product {self.product_id}",
            extra={
                "recipe": self.pk,
                "product": self.product_id,
                "demoted": [r.pk for r in demoted],
            },
        )
        primary_recipe_changed.send(
            sender=self.__class__, recipe=self, demoted=demoted
        )
        return demoted


class RecipeItem(models.Model):
    """
    Material de uma receita.

    estimated_cost = quantity * conversion_ratio * material.cost_per_unit,
    recomputed from the material's current cost on every save().
    """

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name="items",
        verbose_name=_("Receita"),
    )
    material = models.ForeignKey(
        Material,
        on_delete=models.PROTECT,
        related_name="recipe_items",
        verbose_name=_("Material"),
    )
    quantity = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        validators=[positive_quantity],
        verbose_name=_("Quantidade"),
    )
    unit = models.CharField(
        max_length=20,
        verbose_name=_("Unidade"),
    )
    conversion_ratio = models.DecimalField(
        max_digits=18,
        decimal_places=6,
        default=Decimal("1"),
        validators=[positive_ratio],
        verbose_name=_("Fator de Conversão"),
        help_text=_("Converte a unidade do item para a unidade padrão do material"),
    )
    sort_order = models.IntegerField(
        default=0,
        verbose_name=_("Ordem"),
    )
    item_type = models.CharField(
        max_length=20,
        choices=RecipeItemType.choices,
        default=RecipeItemType.MAIN_INGREDIENT,
        verbose_name=_("Tipo"),
    )
    is_optional = models.BooleanField(
        default=False,
        verbose_name=_("Opcional"),
    )
    notes = models.CharField(
        max_length=300,
        blank=True,
        default="",
        verbose_name=_("Observações"),
    )
    estimated_cost = models.DecimalField(
        max_digits=18,
        decimal_places=4,
        default=Decimal("0"),
        editable=False,
        verbose_name=_("Custo Estimado"),
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("criado em"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("atualizado em"))

    class Meta:
        db_table = "formulary_recipe_item"
        verbose_name = _("Item da Receita")
        verbose_name_plural = _("Itens da Receita")
        ordering = ["recipe", "sort_order", "id"]
        unique_together = [["recipe", "material"]]
        indexes = [
            models.Index(fields=["material"], name="formulary_item_material_idx"),
        ]

    def clean(self):
        super().clean()
        check_required_text(self, "unit")

    def save(self, *args, **kwargs):
        coerce_decimals(self)
        self.full_clean()
        self.estimated_cost = self.compute_cost()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = {*update_fields, "estimated_cost"}
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        unit_str = f" {self.unit}" if self.unit else ""
        return f"{self.material} ({self.quantity}{unit_str})"

    def compute_cost(self) -> Decimal:
        """Cost at the material's current (database) unit cost."""
        cost_per_unit = (
            Material.objects.filter(pk=self.material_id)
            .values_list("cost_per_unit", flat=True)
            .get()
        )
        return item_cost(self.quantity, self.conversion_ratio, cost_per_unit)
