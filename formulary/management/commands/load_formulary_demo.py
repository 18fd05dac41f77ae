"""
Load demo data for Formulary.

Creates a small bakery catalog:
- Five materials (farinha, açúcar, ovo, manteiga, sal)
- Two bread products
- One costed primary recipe per product

Running it again reuses what already exists.

Usage:
    python manage.py load_formulary_demo
    python manage.py load_formulary_demo --clear
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

MATERIALS = [
    {
        "name": "Farinha de Trigo",
        "description": "Farinha com 12% ou mais de proteína",
        "unit": "g",
        "cost_per_unit": Decimal("0.008"),
        "supplier": "Moinho Central",
        "stock_quantity": Decimal("50000"),
        "minimum_stock": Decimal("5000"),
    },
    {
        "name": "Açúcar",
        "description": "Açúcar refinado",
        "unit": "g",
        "cost_per_unit": Decimal("0.005"),
        "supplier": "Usina Doce",
        "stock_quantity": Decimal("20000"),
        "minimum_stock": Decimal("2000"),
    },
    {
        "name": "Ovo",
        "description": "Ovos frescos",
        "unit": "un",
        "cost_per_unit": Decimal("8.0"),
        "supplier": "Granja Boa Vista",
        "stock_quantity": Decimal("500"),
        "minimum_stock": Decimal("50"),
    },
    {
        "name": "Manteiga sem Sal",
        "description": "Manteiga importada sem sal",
        "unit": "g",
        "cost_per_unit": Decimal("0.02"),
        "supplier": "Laticínios Serra",
        "stock_quantity": Decimal("10000"),
        "minimum_stock": Decimal("1000"),
    },
    {
        "name": "Sal",
        "description": "Sal refinado",
        "unit": "g",
        "cost_per_unit": Decimal("0.002"),
        "supplier": "Salina Norte",
        "stock_quantity": Decimal("5000"),
        "minimum_stock": Decimal("500"),
    },
]

PRODUCTS = [
    {
        "name": "Pão de Forma",
        "code": "BREAD-001",
        "description": "Pão de forma clássico, macio e levemente adocicado",
        "category": "food",
        "standard_yield": Decimal("2"),
        "yield_unit": "un",
        "production_minutes": 180,
        "standard_price": Decimal("45.0"),
    },
    {
        "name": "Pãozinho de Manteiga",
        "code": "BREAD-002",
        "description": "Pãezinhos amanteigados para o café da manhã",
        "category": "food",
        "standard_yield": Decimal("12"),
        "yield_unit": "un",
        "production_minutes": 150,
        "standard_price": Decimal("60.0"),
    },
]

# product code -> (recipe name, batch yield, [(material name, quantity, unit)])
RECIPES = {
    "BREAD-001": (
        "Pão de Forma Tradicional",
        Decimal("2"),
        [
            ("Farinha de Trigo", Decimal("500"), "g"),
            ("Açúcar", Decimal("30"), "g"),
            ("Ovo", Decimal("1"), "un"),
            ("Manteiga sem Sal", Decimal("40"), "g"),
            ("Sal", Decimal("8"), "g"),
        ],
    ),
    "BREAD-002": (
        "Pãozinho de Manteiga",
        Decimal("12"),
        [
            ("Farinha de Trigo", Decimal("600"), "g"),
            ("Açúcar", Decimal("60"), "g"),
            ("Ovo", Decimal("2"), "un"),
            ("Manteiga sem Sal", Decimal("100"), "g"),
            ("Sal", Decimal("10"), "g"),
        ],
    ),
}


class Command(BaseCommand):
    help = "Carrega dados de demonstração para o Formulary"

    def add_arguments(self, parser):
        parser.add_argument(
            "--clear",
            action="store_true",
            help="Limpa dados existentes antes de carregar",
        )

    def handle(self, *args, **options):
        from formulary.models import Material, Product, Recipe

        self.stdout.write("=" * 60)
        self.stdout.write("🍞 Carregando dados de demonstração do Formulary...")
        self.stdout.write("=" * 60)

        with transaction.atomic():
            if options["clear"]:
                self.stdout.write("\n🗑️  Limpando dados existentes...")
                # Items protect their materials: recipes go first
                Recipe.objects.all().delete()
                Product.objects.all().delete()
                Material.objects.all().delete()
                self.stdout.write(self.style.SUCCESS("   ✓ Dados limpos"))

            materials = self._create_materials()
            products = self._create_products()
            self._create_recipes(products, materials)

        self.stdout.write("\n" + "=" * 60)
        self.stdout.write(
            self.style.SUCCESS("✅ Dados de demonstração carregados com sucesso!")
        )
        self.stdout.write("=" * 60)
        self._print_summary()

    def _create_materials(self) -> dict:
        from formulary import formula
        from formulary.models import Material

        self.stdout.write("\n🧂 Materiais:")
        materials = {}
        for data in MATERIALS:
            material = Material.objects.filter(name=data["name"]).first()
            if material is None:
                material = formula.create_material(**data)
                self.stdout.write(f"   ✓ {material.name} ({material.cost_per_unit}/{material.unit})")
            else:
                self.stdout.write(f"   • {material.name} já existe")
            materials[material.name] = material
        return materials

    def _create_products(self) -> dict:
        from formulary import formula
        from formulary.models import Product

        self.stdout.write("\n📦 Produtos:")
        products = {}
        for data in PRODUCTS:
            product = Product.objects.filter(code=data["code"]).first()
            if product is None:
                product = formula.create_product(**data)
                self.stdout.write(f"   ✓ {product}")
            else:
                self.stdout.write(f"   • {product} já existe")
            products[product.code] = product
        return products

    def _create_recipes(self, products: dict, materials: dict) -> None:
        from formulary import formula
        from formulary.models import Recipe

        self.stdout.write("\n📋 Receitas:")
        for code, (name, batch_yield, items) in RECIPES.items():
            product = products[code]
            if Recipe.objects.filter(product=product, name=name, version="1.0").exists():
                self.stdout.write(f"   • {name} já existe")
                continue

            recipe = formula.create_recipe(
                product_id=product.pk,
                name=name,
                version="1.0",
                batch_yield=batch_yield,
                created_by="demo",
            )
            for order, (material_name, quantity, unit) in enumerate(items, start=1):
                formula.add_item(
                    recipe.pk,
                    materials[material_name].pk,
                    quantity=quantity,
                    unit=unit,
                    sort_order=order,
                )
            formula.set_primary_recipe(recipe.pk)
            formula.update_recipe(recipe.pk, {"status": "published"})

            recipe.refresh_from_db()
            self.stdout.write(f"   ✓ {recipe} → custo {recipe.estimated_cost}")

    def _print_summary(self):
        """Print summary of created data."""
        from formulary.models import Material, Product, Recipe, RecipeItem

        self.stdout.write("\n📊 Resumo:")
        self.stdout.write(f"   • {Material.objects.count()} materiais")
        self.stdout.write(f"   • {Product.objects.count()} produtos")
        self.stdout.write(f"   • {Recipe.objects.count()} receitas")
        self.stdout.write(f"   • {RecipeItem.objects.count()} itens de receita")
