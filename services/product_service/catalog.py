"""The shop's product list. Lives in the repository, not in the database."""
from .schemas import Product

CDN_BASE_URL = "https://res.cloudinary.com/drhvaqfux/image/upload"


def get_image_url(image_path: str) -> str:
    return f"{CDN_BASE_URL}/{image_path}"


_IMAGES = {
    "magnetic_tray_extra_large": {
        "main": "v1766668115/IMG20250406195809_agngbr.png",
        "gallery": [
            "v1766668115/IMG20250406195809_agngbr.png",
            "v1766668115/IMG20250406195849_itcncb.png",
            "v1766668115/IMG20250406102606_y0tdge.png",
            "v1766668115/IMG20250406102914_dezk2e.png",
            "v1766668115/IMG20250406114344_loa9ls.png",
        ],
    },
    "magnetic_tray_large": {
        "main": "v1766668739/IMG20250406195739_eqfvod.png",
        "gallery": [
            "v1766668739/IMG20250406195739_eqfvod.png",
            "v1766668739/IMG20250406200006_dtid8c.png",
            "v1766668739/IMG20250406102858_tyymuw.png",
            "v1766668739/IMG20250406102512_uo4xro.png",
            "v1766668739/IMG20250406102742_xsnfng.png",
        ],
    },
    "magnetic_tray_standard": {
        "main": "v1766668725/IMG20250406195749_h9nelw.png",
        "gallery": [
            "v1766668725/IMG20250406195749_h9nelw.png",
            "v1766668725/IMG20250406200043_j5j0md.png",
            "v1766668725/IMG20250406102846_mlxuv9.png",
            "v1766668725/IMG20250406102839_bkhfwz.png",
            "v1766668725/IMG20250406102448_d1lpd1.png",
        ],
    },
}


def _product(id: int, name: str, price: float, description: str, category: str, images: str, stock: int) -> Product:
    data = _IMAGES[images]
    return Product(
        id=id,
        name=name,
        price=price,
        description=description,
        category=category,
        image=get_image_url(data["main"]),
        images=[get_image_url(path) for path in data["gallery"]],
        stock=stock,
    )


PRODUCTS: list[Product] = [
    _product(
        1,
        "Magnetic Frag Rack [Extra Large]",
        34.99,
        "Extra large magnetic frag rack for holding coral frags against the aquarium glass",
        "Frag Rack",
        "magnetic_tray_extra_large",
        15,
    ),
    _product(
        2,
        "Magnetic Frag Rack [Large]",
        29.99,
        "Large magnetic frag rack for holding coral frags against the aquarium glass",
        "Frag Rack",
        "magnetic_tray_large",
        8,
    ),
    _product(
        3,
        "Magnetic Frag Rack [Standard]",
        25.99,
        "Standard magnetic frag rack for holding coral frags against the aquarium glass",
        "Frag Rack",
        "magnetic_tray_standard",
        10,
    ),
    # Low-value item for exercising live payments end to end
    _product(
        4,
        "Magnetic Frag Rack [TEST]",
        0.10,
        "Test listing",
        "TEST",
        "magnetic_tray_standard",
        10,
    ),
]
