"""
상품(카탈로그) 관련 Repository 구현
"""
from typing import Any, Iterable

from sqlalchemy import text

from libs.common import ensure_kst, now_kst, to_db_datetime
from libs.schemas import Product, ProductColor, ProductVisibility
from services.shop.app.db.repositories.base import (
    _SQLRepositoryBase,
    dump_json,
    expanding_text,
    load_json,
)

_PRODUCT_COLUMNS = """
    p.product_id,
    p.product_name,
    p.brand_name,
    p.description,
    p.product_type,
    p.sport_types,
    p.product_gender,
    p.product_sizes,
    p.product_visibility,
    p.original_price,
    p.sale_price,
    p.primary_image,
    p.stock_quantity,
    p.sale_quantity,
    p.details_description,
    p.details_description_id,
    p.created_at,
    p.updated_at
"""


def _load_colors(session, product_ids: list[int]) -> dict[int, list[ProductColor]]:
    """상품 ID별 색상 재고 목록을 조회합니다."""
    if not product_ids:
        return {}
    rows = session.execute(
        expanding_text(
            """
            SELECT product_id, color_value, color_id, name, hex, quantity, sale, images
            FROM product_colors
            WHERE product_id IN :product_ids
            ORDER BY product_id, color_id
            """,
            "product_ids",
        ),
        {"product_ids": list(product_ids)},
    ).mappings().all()

    colors: dict[int, list[ProductColor]] = {}
    for row in rows:
        colors.setdefault(row["product_id"], []).append(
            ProductColor(
                id=row["color_id"],
                name=row["name"],
                value=row["color_value"],
                hex=row["hex"],
                quantity=row["quantity"],
                sale=row["sale"],
                images=load_json(row["images"], []),
            )
        )
    return colors


def _to_products(session, rows: Iterable[Any]) -> list[Product]:
    rows = list(rows)
    colors = _load_colors(session, [row["product_id"] for row in rows])
    return [
        Product(
            productId=row["product_id"],
            productName=row["product_name"],
            brandName=row["brand_name"],
            description=row["description"],
            productType=row["product_type"],
            sportTypes=load_json(row["sport_types"], []),
            productGender=row["product_gender"],
            productSizes=load_json(row["product_sizes"], []),
            productVisibility=row["product_visibility"],
            originalPrice=row["original_price"],
            salePrice=row["sale_price"],
            productColors=colors.get(row["product_id"], []),
            primaryImage=load_json(row["primary_image"]),
            stockQuantity=row["stock_quantity"],
            saleQuantity=row["sale_quantity"],
            detailsDescription=row["details_description"],
            detailsDescriptionId=row["details_description_id"],
            createdAt=ensure_kst(row["created_at"]),
            updatedAt=ensure_kst(row["updated_at"]),
        )
        for row in rows
    ]


def _product_params(data: dict) -> dict:
    """상품 데이터(camelCase)를 컬럼 파라미터로 변환합니다."""
    primary_image = data.get("primaryImage")
    return {
        "product_name": data["productName"],
        "brand_name": data.get("brandName"),
        "description": data["description"],
        "product_type": int(data["productType"]),
        "sport_types": dump_json([int(v) for v in data.get("sportTypes", [])]),
        "product_gender": int(data["productGender"]),
        "product_sizes": dump_json(list(data.get("productSizes", []))),
        "product_visibility": int(data.get("productVisibility", ProductVisibility.VISIBILITY)),
        "original_price": data["originalPrice"],
        "sale_price": data.get("salePrice"),
        "primary_image": dump_json(primary_image),
        "stock_quantity": data.get("stockQuantity", 0),
        "details_description": data.get("detailsDescription", ""),
        "details_description_id": data.get("detailsDescriptionId"),
    }


def _insert_colors(session, product_id: int, colors: list[dict]) -> None:
    for color in colors:
        session.execute(
            text(
                """
                INSERT INTO product_colors (
                    product_id, color_value, color_id, name, hex, quantity, sale, images
                ) VALUES (
                    :product_id, :color_value, :color_id, :name, :hex, :quantity, :sale, :images
                )
                """
            ),
            {
                "product_id": product_id,
                "color_value": int(color["value"]),
                "color_id": color["id"],
                "name": color["name"],
                "hex": color["hex"],
                "quantity": color["quantity"],
                "sale": color.get("sale") or 0,
                "images": dump_json(color.get("images") or []),
            },
        )


class SQLAlchemyProductRepository(_SQLRepositoryBase):
    """SQLAlchemy를 사용한 상품 Repository 구현"""

    async def find_product_by_id(self, product_id: int) -> Product | None:
        def _query():
            with self._session_factory() as session:
                row = session.execute(
                    text(f"SELECT {_PRODUCT_COLUMNS} FROM products p WHERE p.product_id = :product_id"),
                    {"product_id": product_id},
                ).mappings().first()
                if row is None:
                    return None
                return _to_products(session, [row])[0]

        return await self._run_in_thread(_query)

    async def find_products_by_ids(self, product_ids: list[int]) -> list[Product]:
        if not product_ids:
            return []

        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    expanding_text(
                        f"SELECT {_PRODUCT_COLUMNS} FROM products p WHERE p.product_id IN :product_ids",
                        "product_ids",
                    ),
                    {"product_ids": list(product_ids)},
                ).mappings().all()
                return _to_products(session, rows)

        return await self._run_in_thread(_query)

    async def find_visible_products(
        self,
        search: str | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> tuple[list[Product], int]:
        """
        노출 상태인 상품을 최신순으로 조회합니다.

        Args:
            search: 상품명 검색어 (대소문자 구분 없음)
            offset: 건너뛸 개수 (None이면 전체)
            limit: 최대 개수 (None이면 전체)

        Returns:
            (상품 목록, 조건에 맞는 전체 개수) 튜플
        """
        def _query():
            conditions = ["p.product_visibility = :visibility"]
            params: dict[str, Any] = {"visibility": int(ProductVisibility.VISIBILITY)}
            if search:
                conditions.append("LOWER(p.product_name) LIKE :pattern")
                params["pattern"] = f"%{search.lower()}%"
            where = " AND ".join(conditions)

            paging = ""
            if limit is not None:
                paging = "LIMIT :limit OFFSET :offset"
                params["limit"] = limit
                params["offset"] = offset or 0

            with self._session_factory() as session:
                total = session.execute(
                    text(f"SELECT COUNT(*) FROM products p WHERE {where}"),
                    params,
                ).scalar_one()
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_PRODUCT_COLUMNS}
                        FROM products p
                        WHERE {where}
                        ORDER BY p.created_at DESC, p.product_id DESC
                        {paging}
                        """
                    ),
                    params,
                ).mappings().all()
                return (_to_products(session, rows), total)

        return await self._run_in_thread(_query)

    async def find_best_sellers(
        self,
        product_types: list[int] | None = None,
        product_genders: list[int] | None = None,
        limit: int = 10,
    ) -> list[Product]:
        """누적 판매 수량이 많은 노출 상품을 조회합니다."""
        def _query():
            conditions = ["p.product_visibility = :visibility"]
            params: dict[str, Any] = {"visibility": int(ProductVisibility.VISIBILITY), "limit": limit}
            expanding = []
            if product_types:
                conditions.append("p.product_type IN :product_types")
                params["product_types"] = list(product_types)
                expanding.append("product_types")
            if product_genders:
                conditions.append("p.product_gender IN :product_genders")
                params["product_genders"] = list(product_genders)
                expanding.append("product_genders")

            query = expanding_text(
                f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products p
                WHERE {" AND ".join(conditions)}
                ORDER BY p.sale_quantity DESC, p.product_id ASC
                LIMIT :limit
                """,
                *expanding,
            )
            with self._session_factory() as session:
                rows = session.execute(query, params).mappings().all()
                return _to_products(session, rows)

        return await self._run_in_thread(_query)

    async def find_related_products(self, product: Product, limit: int = 10) -> list[Product]:
        """같은 스포츠 종목을 가진 다른 노출 상품을 조회합니다."""
        sport_types = {int(sport) for sport in product.sportTypes}
        if not sport_types:
            return []

        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_PRODUCT_COLUMNS}
                        FROM products p
                        WHERE p.product_visibility = :visibility
                          AND p.product_id <> :product_id
                        ORDER BY p.created_at DESC, p.product_id DESC
                        """
                    ),
                    {"visibility": int(ProductVisibility.VISIBILITY), "product_id": product.productId},
                ).mappings().all()
                # 스포츠 종목은 JSON 배열로 저장되어 있으므로 애플리케이션에서 필터링
                related = [
                    row for row in rows
                    if sport_types.intersection(load_json(row["sport_types"], []))
                ][:limit]
                return _to_products(session, related)

        return await self._run_in_thread(_query)

    async def create_product(self, data: dict) -> Product:
        def _create():
            now = to_db_datetime(now_kst())
            params = _product_params(data)
            params.update({"sale_quantity": 0, "created_at": now, "updated_at": now})
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        INSERT INTO products (
                            product_name, brand_name, description, product_type, sport_types,
                            product_gender, product_sizes, product_visibility, original_price,
                            sale_price, primary_image, stock_quantity, sale_quantity,
                            details_description, details_description_id, created_at, updated_at
                        ) VALUES (
                            :product_name, :brand_name, :description, :product_type, :sport_types,
                            :product_gender, :product_sizes, :product_visibility, :original_price,
                            :sale_price, :primary_image, :stock_quantity, :sale_quantity,
                            :details_description, :details_description_id, :created_at, :updated_at
                        )
                        """
                    ),
                    params,
                )
                product_id = result.lastrowid
                _insert_colors(session, product_id, data.get("productColors", []))
                session.commit()

                row = session.execute(
                    text(f"SELECT {_PRODUCT_COLUMNS} FROM products p WHERE p.product_id = :product_id"),
                    {"product_id": product_id},
                ).mappings().first()
                return _to_products(session, [row])[0]

        return await self._run_in_thread(_create)

    async def update_product(self, product_id: int, data: dict) -> Product | None:
        """
        상품 정보를 수정합니다.
        `productColors`가 포함되면 색상 재고를 전달된 값(누적 판매 수량 포함)으로 교체합니다.
        """
        def _update():
            with self._session_factory() as session:
                exists = session.execute(
                    text("SELECT product_id FROM products WHERE product_id = :product_id"),
                    {"product_id": product_id},
                ).first()
                if exists is None:
                    return None

                params = _product_params(data)
                params.update({"product_id": product_id, "updated_at": to_db_datetime(now_kst())})
                session.execute(
                    text(
                        """
                        UPDATE products
                        SET product_name = :product_name,
                            brand_name = :brand_name,
                            description = :description,
                            product_type = :product_type,
                            sport_types = :sport_types,
                            product_gender = :product_gender,
                            product_sizes = :product_sizes,
                            product_visibility = :product_visibility,
                            original_price = :original_price,
                            sale_price = :sale_price,
                            primary_image = :primary_image,
                            details_description = :details_description,
                            details_description_id = :details_description_id,
                            updated_at = :updated_at
                        WHERE product_id = :product_id
                        """
                    ),
                    params,
                )

                # 재고는 주문 처리와 동시에 바뀔 수 있으므로 색상을 교체할 때만 다시 합산
                if "productColors" in data:
                    session.execute(
                        text("DELETE FROM product_colors WHERE product_id = :product_id"),
                        {"product_id": product_id},
                    )
                    _insert_colors(session, product_id, data["productColors"])
                    session.execute(
                        text(
                            """
                            UPDATE products
                            SET stock_quantity = (
                                SELECT COALESCE(SUM(quantity), 0)
                                FROM product_colors
                                WHERE product_id = :product_id
                            )
                            WHERE product_id = :product_id
                            """
                        ),
                        {"product_id": product_id},
                    )
                session.commit()

                row = session.execute(
                    text(f"SELECT {_PRODUCT_COLUMNS} FROM products p WHERE p.product_id = :product_id"),
                    {"product_id": product_id},
                ).mappings().first()
                return _to_products(session, [row])[0]

        return await self._run_in_thread(_update)

    async def delete_product(self, product_id: int) -> bool:
        def _delete():
            with self._session_factory() as session:
                params = {"product_id": product_id}
                session.execute(text("DELETE FROM product_colors WHERE product_id = :product_id"), params)
                session.execute(text("DELETE FROM favorite_products WHERE product_id = :product_id"), params)
                session.execute(
                    text("DELETE FROM discount_program_products WHERE product_id = :product_id"),
                    params,
                )
                result = session.execute(text("DELETE FROM products WHERE product_id = :product_id"), params)
                if result.rowcount == 0:
                    session.rollback()
                    return False
                session.commit()
                return True

        return await self._run_in_thread(_delete)

    async def add_favorite(self, user_id: int, product_id: int) -> bool:
        """찜 목록에 추가합니다. 이미 있으면 False를 반환합니다."""
        def _add():
            with self._session_factory() as session:
                exists = session.execute(
                    text(
                        """
                        SELECT 1 FROM favorite_products
                        WHERE user_id = :user_id AND product_id = :product_id
                        """
                    ),
                    {"user_id": user_id, "product_id": product_id},
                ).first()
                if exists is not None:
                    return False
                session.execute(
                    text(
                        """
                        INSERT INTO favorite_products (user_id, product_id, created_at)
                        VALUES (:user_id, :product_id, :created_at)
                        """
                    ),
                    {"user_id": user_id, "product_id": product_id, "created_at": to_db_datetime(now_kst())},
                )
                session.commit()
                return True

        return await self._run_in_thread(_add)

    async def remove_favorite(self, user_id: int, product_id: int) -> bool:
        def _remove():
            with self._session_factory() as session:
                result = session.execute(
                    text(
                        """
                        DELETE FROM favorite_products
                        WHERE user_id = :user_id AND product_id = :product_id
                        """
                    ),
                    {"user_id": user_id, "product_id": product_id},
                )
                session.commit()
                return result.rowcount > 0

        return await self._run_in_thread(_remove)

    async def find_favorite_products(self, user_id: int) -> list[Product]:
        """사용자의 찜한 노출 상품을 최근 찜한 순으로 조회합니다."""
        def _query():
            with self._session_factory() as session:
                rows = session.execute(
                    text(
                        f"""
                        SELECT {_PRODUCT_COLUMNS}
                        FROM favorite_products f
                        INNER JOIN products p ON f.product_id = p.product_id
                        WHERE f.user_id = :user_id
                          AND p.product_visibility = :visibility
                        ORDER BY f.created_at DESC, p.product_id DESC
                        """
                    ),
                    {"user_id": user_id, "visibility": int(ProductVisibility.VISIBILITY)},
                ).mappings().all()
                return _to_products(session, rows)

        return await self._run_in_thread(_query)
