import logging

from flask import jsonify

from coachhub.errors import ApiError, NotFoundError
from coachhub.extensions import db
from coachhub.models import MarketplaceProduct
from coachhub.schemas.admin import MarketplaceProductSchema
from coachhub.utils.dates import utcnow
from coachhub.utils.decorators import admin_required
from coachhub.utils.payload import get_payload, get_upload
from . import admin_bp

logger = logging.getLogger(__name__)


def _product_or_404(product_id):
    product = MarketplaceProduct.query.filter_by(id=product_id, deleted_at=None).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _store_image(product):
    image = get_upload("image")
    if not image:
        return
    data = image.read()
    product.image_name = image.filename
    product.image_mime = image.mimetype
    product.image_size = len(data)
    product.image_data = data


def _commit(action):
    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Marketplace {action} failed: {e}")
        raise ApiError(f"Failed to {action} product", 500)


@admin_bp.route("/marketplace", methods=["POST"])
@admin_required
def create_product():
    data = MarketplaceProductSchema().load(get_payload())
    data.setdefault("is_active", True)
    if data.get("stock_quantity") is None:
        data["stock_quantity"] = 0

    product = MarketplaceProduct(**data)
    _store_image(product)
    db.session.add(product)
    _commit("create")
    return jsonify({"success": True, "data": product.to_dict()}), 201


@admin_bp.route("/marketplace", methods=["GET"])
@admin_required
def list_products():
    products = MarketplaceProduct.query.filter_by(deleted_at=None) \
        .order_by(MarketplaceProduct.created_at.desc(), MarketplaceProduct.id.desc()).all()
    return jsonify({"success": True, "data": [p.to_dict() for p in products], "total": len(products)})


@admin_bp.route("/marketplace/<int:product_id>", methods=["GET"])
@admin_required
def get_product(product_id):
    return jsonify({"success": True, "data": _product_or_404(product_id).to_dict()})


@admin_bp.route("/marketplace/<int:product_id>", methods=["PATCH"])
@admin_required
def update_product(product_id):
    product = _product_or_404(product_id)
    data = MarketplaceProductSchema(partial=True).load(get_payload())
    for field, value in data.items():
        setattr(product, field, value)
    _store_image(product)
    _commit("update")
    return jsonify({"success": True, "data": product.to_dict()})


@admin_bp.route("/marketplace/<int:product_id>", methods=["DELETE"])
@admin_required
def delete_product(product_id):
    product = _product_or_404(product_id)
    product.deleted_at = utcnow()
    _commit("remove")
    return jsonify({"success": True, "message": "Product removed successfully"})
