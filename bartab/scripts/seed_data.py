# scripts/seed_data.py
import asyncio
from bartab.core.db import init_db, close_db
from bartab.models.state import BarState, Category, Product
from bartab.services.snapshot_store import SnapshotStore


def _product(id, name, category_id, price, stock, low_stock, discount=0, start=None, end=None, image=None):
    return Product(
        id=id, name=name, category_id=category_id, price=price, stock=stock, low_stock=low_stock,
        happy_hour_discount=discount, happy_hour_start=start, happy_hour_end=end, image=image,
    )


def build_seed_state() -> BarState:
    """Demo catalog used when no state has been saved yet. No open tabs."""
    categories = (
        Category(id="c_drinks", name="Drinks", description="Alcoholic and non-alcoholic drinks"),
        Category(id="c_food", name="Food", description="Main dishes and snacks"),
        Category(id="c_other", name="Other", description="Complementary products"),
    )
    products = (
        _product("p_aguila", "Cerveza Aguila", "c_drinks", 6000, 24, 8, 15, 17, 19, "/images/products/aguila.png"),
        _product("p_poker", "Cerveza Poker", "c_drinks", 6000, 24, 8, 15, 17, 19, "/images/products/poker.jpg"),
        _product("p_club", "Club Colombia", "c_drinks", 8000, 18, 6, 20, 17, 19, "/images/products/club.jpg"),
        _product("p_water", "Water", "c_drinks", 4000, 20, 6, image="/images/products/agua.jpg"),
        _product("p_empanada", "Empanada", "c_food", 2500, 50, 10, 10, 15, 17, "/images/products/empanada.png"),
        _product("p_salchipapa", "Salchipapa", "c_food", 12000, 10, 4, 25, 15, 17, "/images/products/salchipapa.jpg"),
        _product("p_hotdog", "Hot Dog", "c_food", 10000, 12, 4, 20, 15, 17, "/images/products/perro.png"),
        _product("p_ice", "Ice", "c_other", 2000, 30, 8, image="/images/products/hielo.jpg"),
    )
    return BarState(products=products, categories=categories)


async def seed():
    store = SnapshotStore()
    existing = await store.load_state()
    if existing is not None:
        print(f"State already present ({len(existing.products)} products, {len(existing.orders)} orders). Overwriting catalog.")
    # Idempotent: the live state is replaced by the seed every run
    state = build_seed_state()
    await store.save_state(state)
    print("Products:", ", ".join(p.id for p in state.products))
    print("Catalog seeded.")

async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
