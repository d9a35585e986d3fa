import base64

from coachhub.extensions import db
from coachhub.utils.dates import utcnow, isoformat


class MarketplaceProduct(db.Model):
    __tablename__ = "marketplace_products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100))
    price = db.Column(db.Numeric(10, 2))
    stock_quantity = db.Column(db.Integer, default=0)
    brand_seller = db.Column(db.String(150))
    discount = db.Column(db.Numeric(10, 2))
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True, index=True)

    image_name = db.Column(db.String(255))
    image_mime = db.Column(db.String(100))
    image_size = db.Column(db.Integer)
    image_data = db.Column(db.LargeBinary)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = db.Column(db.DateTime)

    def __repr__(self):
        return f'<MarketplaceProduct {self.name}>'

    def to_dict(self, include_image=True):
        data = {
            'id': self.id,
            'productName': self.name,
            'categoryId': self.category,
            'price': float(self.price) if self.price is not None else 0,
            'stockQuantity': self.stock_quantity,
            'brandSeller': self.brand_seller,
            'discount': float(self.discount) if self.discount is not None else 0,
            'description': self.description,
            'isActive': self.is_active,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
            'image': None,
        }
        if include_image and self.image_data:
            data['image'] = {
                'filename': self.image_name,
                'mimeType': self.image_mime,
                'size': self.image_size,
                'base64': base64.b64encode(self.image_data).decode('ascii'),
            }
        return data
