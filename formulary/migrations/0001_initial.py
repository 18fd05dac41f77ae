"""
Initial Formulary schema.

- Material, Product, Recipe, RecipeItem
- One primary recipe per product (conditional unique constraint)
- History tracking for Material, Product and Recipe
"""

import django.core.validators
import django.db.models.deletion
import simple_history.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


HISTORY_TYPE_CHOICES = [("+", "Created"), ("~", "Changed"), ("-", "Deleted")]

MATERIAL_CATEGORY_CHOICES = [
    ("raw_material", "Matéria-prima"),
    ("chemical", "Químico"),
    ("packaging", "Embalagem"),
    ("semi_finished", "Semiacabado"),
    ("consumable", "Consumível"),
    ("other", "Outro"),
]

PRODUCT_CATEGORY_CHOICES = [
    ("food", "Alimento"),
    ("beverage", "Bebida"),
    ("cosmetics", "Cosmético"),
    ("pharmaceutical", "Farmacêutico"),
    ("chemical", "Químico"),
    ("electronics", "Eletrônico"),
    ("mechanical_parts", "Peças Mecânicas"),
    ("other", "Outro"),
]

RECIPE_STATUS_CHOICES = [
    ("draft", "Rascunho"),
    ("pending_approval", "Aguardando Aprovação"),
    ("approved", "Aprovada"),
    ("published", "Publicada"),
    ("inactive", "Inativa"),
    ("deprecated", "Obsoleta"),
]

RECIPE_ITEM_TYPE_CHOICES = [
    ("main_ingredient", "Ingrediente Principal"),
    ("additive", "Aditivo"),
    ("seasoning", "Tempero"),
    ("preservative", "Conservante"),
    ("colorant", "Corante"),
    ("fragrance", "Fragrância"),
    ("catalyst", "Catalisador"),
    ("other", "Outro"),
]


def non_negative():
    return django.core.validators.MinValueValidator(
        Decimal("0"), message="Não pode ser negativo."
    )


def at_least(value):
    return django.core.validators.MinValueValidator(
        value, message="Deve ser maior que zero."
    )


def history_fields():
    return [
        ("history_id", models.AutoField(primary_key=True, serialize=False)),
        ("history_date", models.DateTimeField(db_index=True)),
        ("history_change_reason", models.CharField(max_length=100, null=True)),
        ("history_type", models.CharField(choices=HISTORY_TYPE_CHOICES, max_length=1)),
        (
            "history_user",
            models.ForeignKey(
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def history_options(verbose_name, verbose_name_plural):
    return {
        "verbose_name": f"historical {verbose_name}",
        "verbose_name_plural": f"historical {verbose_name_plural}",
        "ordering": ("-history_date", "-history_id"),
        "get_latest_by": ("history_date", "history_id"),
    }


def material_fields(history=False):
    return [
        ("name", models.CharField(max_length=100, verbose_name="Nome", **({"db_index": True} if history else {"unique": True}))),
        ("description", models.CharField(blank=True, default="", max_length=500, verbose_name="Descrição")),
        ("category", models.CharField(choices=MATERIAL_CATEGORY_CHOICES, db_index=True, default="raw_material", max_length=20, verbose_name="Categoria")),
        ("unit", models.CharField(help_text="Unidade padrão de custo (g, kg, L, un...)", max_length=20, verbose_name="Unidade")),
        ("cost_per_unit", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18, validators=[non_negative()], verbose_name="Custo por Unidade")),
        ("supplier", models.CharField(blank=True, default="", max_length=200, verbose_name="Fornecedor")),
        ("stock_quantity", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18, validators=[non_negative()], verbose_name="Estoque")),
        ("minimum_stock", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18, validators=[non_negative()], verbose_name="Estoque Mínimo")),
        ("is_active", models.BooleanField(default=True, verbose_name="Ativo")),
    ]


def product_fields(history=False):
    return [
        ("name", models.CharField(max_length=100, verbose_name="Nome")),
        ("code", models.CharField(help_text="Identificador único (ex: BREAD-001)", max_length=50, verbose_name="Código", **({"db_index": True} if history else {"unique": True}))),
        ("description", models.CharField(blank=True, default="", max_length=1000, verbose_name="Descrição")),
        ("category", models.CharField(choices=PRODUCT_CATEGORY_CHOICES, db_index=True, default="food", max_length=20, verbose_name="Categoria")),
        ("standard_yield", models.DecimalField(decimal_places=4, help_text="Quantidade produzida por lote", max_digits=18, validators=[at_least(Decimal("0.0001"))], verbose_name="Rendimento Padrão")),
        ("yield_unit", models.CharField(max_length=20, verbose_name="Unidade de Rendimento")),
        ("production_minutes", models.PositiveIntegerField(validators=[at_least(1)], verbose_name="Tempo de Produção (minutos)")),
        ("standard_price", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18, validators=[non_negative()], verbose_name="Preço Padrão")),
        ("is_active", models.BooleanField(default=True, verbose_name="Ativo")),
    ]


def recipe_fields():
    return [
        ("name", models.CharField(max_length=150, verbose_name="Nome")),
        ("version", models.CharField(help_text="Ex: 1.0, 1.2", max_length=20, verbose_name="Versão")),
        ("description", models.CharField(blank=True, default="", max_length=1000, verbose_name="Descrição")),
        ("batch_yield", models.DecimalField(decimal_places=4, max_digits=18, validators=[at_least(Decimal("0.0001"))], verbose_name="Rendimento do Lote")),
        ("status", models.CharField(choices=RECIPE_STATUS_CHOICES, db_index=True, default="draft", max_length=20, verbose_name="Status")),
        ("is_primary", models.BooleanField(default=False, help_text="Receita vigente do produto", verbose_name="Principal")),
        ("instructions", models.CharField(blank=True, default="", max_length=2000, verbose_name="Modo de Preparo")),
        ("estimated_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), editable=False, max_digits=18, verbose_name="Custo Estimado")),
        ("created_by", models.CharField(blank=True, default="", max_length=100, verbose_name="Criado por")),
        ("approved_by", models.CharField(blank=True, default="", max_length=100, verbose_name="Aprovado por")),
        ("approved_at", models.DateTimeField(blank=True, null=True, verbose_name="aprovado em")),
    ]


def timestamps(history=False):
    if history:
        return [
            ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="criado em")),
            ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="atualizado em")),
        ]
    return [
        ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="criado em")),
        ("updated_at", models.DateTimeField(auto_now=True, verbose_name="atualizado em")),
    ]


def history_id():
    return ("id", models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID"))


def model_id():
    return ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID"))


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        # ══════════════════════════════════════════════════════════════
        # MATERIAL
        # ══════════════════════════════════════════════════════════════
        migrations.CreateModel(
            name="Material",
            fields=[model_id(), *material_fields(), *timestamps()],
            options={
                "verbose_name": "Material",
                "verbose_name_plural": "Materiais",
                "db_table": "formulary_material",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active"], name="formulary_material_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="HistoricalMaterial",
            fields=[history_id(), *material_fields(history=True), *timestamps(history=True), *history_fields()],
            options=history_options("Material", "Materiais"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        # ══════════════════════════════════════════════════════════════
        # PRODUCT
        # ══════════════════════════════════════════════════════════════
        migrations.CreateModel(
            name="Product",
            fields=[model_id(), *product_fields(), *timestamps()],
            options={
                "verbose_name": "Produto",
                "verbose_name_plural": "Produtos",
                "db_table": "formulary_product",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["is_active"], name="formulary_product_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="HistoricalProduct",
            fields=[history_id(), *product_fields(history=True), *timestamps(history=True), *history_fields()],
            options=history_options("Produto", "Produtos"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        # ══════════════════════════════════════════════════════════════
        # RECIPE
        # ══════════════════════════════════════════════════════════════
        migrations.CreateModel(
            name="Recipe",
            fields=[
                model_id(),
                *recipe_fields(),
                *timestamps(),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipes",
                        to="formulary.product",
                        verbose_name="Produto",
                    ),
                ),
            ],
            options={
                "verbose_name": "Receita",
                "verbose_name_plural": "Receitas",
                "db_table": "formulary_recipe",
                "ordering": ["product__name", "name"],
                "unique_together": {("product", "name", "version")},
                "indexes": [models.Index(fields=["product", "is_primary"], name="formulary_recipe_primary_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_primary", True)),
                        fields=("product",),
                        name="formulary_one_primary_recipe_per_product",
                        violation_error_message="O produto já possui uma receita principal.",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="HistoricalRecipe",
            fields=[
                history_id(),
                *recipe_fields(),
                *timestamps(history=True),
                *history_fields(),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        db_constraint=False,
                        null=True,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="+",
                        to="formulary.product",
                        verbose_name="Produto",
                    ),
                ),
            ],
            options=history_options("Receita", "Receitas"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        # ══════════════════════════════════════════════════════════════
        # RECIPE ITEM
        # ══════════════════════════════════════════════════════════════
        migrations.CreateModel(
            name="RecipeItem",
            fields=[
                model_id(),
                ("quantity", models.DecimalField(decimal_places=6, max_digits=18, validators=[at_least(Decimal("0.000001"))], verbose_name="Quantidade")),
                ("unit", models.CharField(max_length=20, verbose_name="Unidade")),
                ("conversion_ratio", models.DecimalField(decimal_places=6, default=Decimal("1"), help_text="Converte a unidade do item para a unidade padrão do material", max_digits=18, validators=[at_least(Decimal("0.000001"))], verbose_name="Fator de Conversão")),
                ("sort_order", models.IntegerField(default=0, verbose_name="Ordem")),
                ("item_type", models.CharField(choices=RECIPE_ITEM_TYPE_CHOICES, default="main_ingredient", max_length=20, verbose_name="Tipo")),
                ("is_optional", models.BooleanField(default=False, verbose_name="Opcional")),
                ("notes", models.CharField(blank=True, default="", max_length=300, verbose_name="Observações")),
                ("estimated_cost", models.DecimalField(decimal_places=4, default=Decimal("0"), editable=False, max_digits=18, verbose_name="Custo Estimado")),
                *timestamps(),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="formulary.recipe",
                        verbose_name="Receita",
                    ),
                ),
                (
                    "material",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="recipe_items",
                        to="formulary.material",
                        verbose_name="Material",
                    ),
                ),
            ],
            options={
                "verbose_name": "Item da Receita",
                "verbose_name_plural": "Itens da Receita",
                "db_table": "formulary_recipe_item",
                "ordering": ["recipe", "sort_order", "id"],
                "unique_together": {("recipe", "material")},
                "indexes": [models.Index(fields=["material"], name="formulary_item_material_idx")],
            },
        ),
    ]
