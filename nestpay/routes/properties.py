from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from nestpay.models import Property, PropertyReview
from nestpay.models.user import ROLE_LANDLORD, ROLE_TENANT
from nestpay.security.rbac import current_user, require_role
from nestpay.services import catalog, reviews, standing
from ._helpers import json_body, lifecycle

bp = Blueprint("properties", __name__)


@bp.post("/properties")
@require_role(ROLE_LANDLORD)
def create_property():
    """Create a property; a join code is generated for it."""
    prop = catalog.create_property(
        current_user().id,
        json_body(),
        default_currency=current_app.config.get("DEFAULT_CURRENCY", "UGX"),
    )
    return jsonify(prop.serialize()), 201


@bp.get("/properties")
@require_role(ROLE_LANDLORD, ROLE_TENANT)
def list_properties():
    """Landlords see their own properties; tenants browse active listings."""
    if current_user().role == ROLE_TENANT:
        props = catalog.browse_properties(request.args.get("q"))
        return jsonify({"total": len(props), "properties": props}), 200

    props = (
        Property.query.filter_by(owner_id=current_user().id)
        .order_by(Property.created_at.desc())
        .all()
    )
    return jsonify({"total": len(props), "properties": [p.serialize() for p in props]}), 200


@bp.get("/properties/lookup")
@jwt_required()
def lookup_by_code():
    """Resolve a join code to the property a tenant is about to join."""
    prop = catalog.resolve_join_code(request.args.get("code"))
    data = prop.serialize()
    data["available_units"] = [u.serialize() for u in catalog.available_units(prop.id)]
    return jsonify(data), 200


@bp.get("/properties/<string:property_id>")
@jwt_required()
def get_property(property_id):
    prop = catalog.get_property(property_id)
    data = prop.serialize(include_units=True)
    data.update(PropertyReview.rating_summary(prop.id))
    if prop.owner_id != current_user().id:
        # only the owner hands out the code
        data.pop("join_code")
    return jsonify(data), 200


@bp.patch("/properties/<string:property_id>")
@require_role(ROLE_LANDLORD)
def update_property(property_id):
    prop = catalog.get_owned_property(property_id, current_user().id)
    catalog.update_property(prop, json_body())
    return jsonify(prop.serialize()), 200


@bp.post("/properties/<string:property_id>/regenerate-code")
@require_role(ROLE_LANDLORD)
def regenerate_code(property_id):
    prop = catalog.get_owned_property(property_id, current_user().id)
    catalog.regenerate_join_code(prop)
    return jsonify(prop.serialize()), 200


@bp.get("/properties/<string:property_id>/units")
@jwt_required()
def list_units(property_id):
    prop = catalog.get_property(property_id)
    user = current_user()
    if prop.owner_id == user.id:
        units = standing.unit_occupancy(prop.id)
    else:
        units = [u.serialize() for u in catalog.available_units(prop.id)]
    return jsonify({"property_id": prop.id, "property_title": prop.title, "units": units}), 200


@bp.post("/properties/<string:property_id>/units")
@require_role(ROLE_LANDLORD)
def create_unit(property_id):
    prop = catalog.get_owned_property(property_id, current_user().id)
    unit = catalog.create_unit(prop, json_body())
    return jsonify(unit.serialize()), 201


@bp.post("/units/<string:unit_id>/vacate")
@require_role(ROLE_LANDLORD)
def vacate_unit(unit_id):
    unit = catalog.get_unit(unit_id)
    catalog.get_owned_property(unit.property_id, current_user().id)
    unit = lifecycle().mark_vacant(unit.id)
    return jsonify(unit.serialize()), 200


@bp.delete("/units/<string:unit_id>")
@require_role(ROLE_LANDLORD)
def delete_unit(unit_id):
    unit = catalog.get_unit(unit_id)
    catalog.get_owned_property(unit.property_id, current_user().id)
    catalog.delete_unit(unit)
    return "", 204


@bp.get("/dashboard")
@require_role(ROLE_LANDLORD)
def dashboard():
    return jsonify(standing.landlord_dashboard(current_user().id)), 200


@bp.get("/properties/<string:property_id>/reviews")
@jwt_required()
def list_reviews(property_id):
    prop = catalog.get_property(property_id)
    data = PropertyReview.rating_summary(prop.id)
    data["reviews"] = [r.serialize() for r in reviews.reviews_for(prop.id)]
    return jsonify(data), 200


@bp.post("/properties/<string:property_id>/reviews")
@require_role(ROLE_TENANT)
def submit_review(property_id):
    prop = catalog.get_property(property_id)
    data = json_body()
    review = reviews.submit_review(current_user().id, prop, data.get("rating"), data.get("comment"))
    return jsonify(review.serialize()), 200
