"""
MongoDB listing and promoter stores (motor).

Predicates are compiled into MongoDB query documents here; this module is the
only place that knows the document store's query language.
"""

import logging
import re
from math import asin, cos, degrees, pi, radians, sin
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument, TEXT
from pymongo.errors import OperationFailure, PyMongoError

from nestify.error_handling import StoreError
from nestify.filtering import predicate as p
from nestify.filtering.delivery import month_spellings
from nestify.filtering.geo import EARTH_RADIUS_KM
from nestify.models import Listing, Promoter
from nestify.filtering.sorting import SortKey

logger = logging.getLogger(__name__)

LISTINGS_COLLECTION = "properties"
PROMOTERS_COLLECTION = "promoters"

# Fields that may hold either externally assigned strings or ObjectIds
_REFERENCE_FIELDS = (p.ID, p.PROMOTER)
_TEXT_SCORE = {"$meta": "textScore"}

_ISO_LABEL = r"^\s*(\d{4})-(\d{1,2})\s*$"
_FRENCH_LABEL = r"^\s*(\S+)\s+(\d{4})\s*$"
# Index options differ from an existing index on the same keys
_INDEX_CONFLICTS = (85, 86)


def _id_variants(value: Any) -> List[Any]:
    if isinstance(value, str) and ObjectId.is_valid(value):
        return [value, ObjectId(value)]
    return [value]


async def _ensure_index(collection, keys, **options) -> None:
    try:
        await collection.create_index(keys, **options)
    except OperationFailure as e:
        if e.code not in _INDEX_CONFLICTS:
            raise
        logger.warning(f"Keeping existing index on {keys}: {e}")


def _half_sine_squared(angle: Any) -> Dict[str, Any]:
    return {"$pow": [{"$sin": {"$divide": [angle, 2]}}, 2]}


def _compile_geo(clause: p.GeoRadius) -> Dict[str, Any]:
    """
    Haversine radius filter on the named ``lat`` and ``lng`` fields.

    A bounding box narrows the candidates; the exact distance check runs as
    an aggregation expression.
    """
    lat_path, lng_path = f"{clause.field}.lat", f"{clause.field}.lng"
    angle = clause.radius_km / EARTH_RADIUS_KM
    span = degrees(angle)
    query: Dict[str, Any] = {
        lat_path: {"$gte": clause.lat - span, "$lte": clause.lat + span},
        # Replaced by a window below when the circle allows one
        lng_path: {"$type": "number"},
    }
    if angle >= pi:
        return query

    cos_lat = cos(radians(clause.lat))
    if angle < pi / 2 and sin(angle) < cos_lat:
        lng_span = degrees(asin(sin(angle) / cos_lat))
        if -180 <= clause.lng - lng_span and clause.lng + lng_span <= 180:
            query[lng_path] = {"$gte": clause.lng - lng_span, "$lte": clause.lng + lng_span}

    lat1 = radians(clause.lat)
    lat2 = {"$degreesToRadians": "$" + lat_path}
    lng_delta = {"$subtract": [{"$degreesToRadians": "$" + lng_path}, radians(clause.lng)]}
    spread = {"$add": [
        _half_sine_squared({"$subtract": [lat2, lat1]}),
        {"$multiply": [cos(lat1), {"$cos": lat2}, _half_sine_squared(lng_delta)]},
    ]}
    query["$expr"] = {"$lte": [spread, sin(angle / 2) ** 2]}
    return query


def _compile_delivery(clause: p.DeliveryBefore) -> Dict[str, Any]:
    """
    Delivery month on or before the cutoff, parsed from the stored label.

    Months compare as ``year * 100 + month``. Labels that parse neither as
    ``YYYY-MM`` nor as a French month name and year never match.
    """
    spellings = month_spellings()
    names = [name for name, _ in spellings]
    numbers = [number for _, number in spellings]
    path = "$" + clause.field
    text = {"$cond": [{"$eq": [{"$type": path}, "string"]}, path, ""]}

    def capture(match: str, index: int) -> Dict[str, Any]:
        return {"$arrayElemAt": [f"$${match}.captures", index]}

    iso_month = {"$toInt": capture("iso", 1)}
    iso_value = {"$cond": [
        {"$and": [{"$gte": [iso_month, 1]}, {"$lte": [iso_month, 12]}]},
        {"$add": [{"$multiply": [{"$toInt": capture("iso", 0)}, 100]}, iso_month]},
        None,
    ]}
    name_index = {"$indexOfArray": [names, {"$toLower": capture("french", 0)}]}
    french_value = {"$cond": [
        {"$gte": [name_index, 0]},
        {"$add": [{"$multiply": [{"$toInt": capture("french", 1)}, 100]}, {"$arrayElemAt": [numbers, name_index]}]},
        None,
    ]}
    delivery = {"$let": {
        "vars": {
            "iso": {"$regexFind": {"input": text, "regex": _ISO_LABEL}},
            "french": {"$regexFind": {"input": text, "regex": _FRENCH_LABEL}},
        },
        "in": {"$switch": {
            "branches": [
                {"case": {"$ne": ["$$iso", None]}, "then": iso_value},
                {"case": {"$ne": ["$$french", None]}, "then": french_value},
            ],
            "default": None,
        }},
    }}
    cutoff = clause.year * 100 + clause.month
    return {
        clause.field: {"$type": "string"},
        "$expr": {"$let": {
            "vars": {"month": delivery},
            "in": {"$and": [{"$ne": ["$$month", None]}, {"$lte": ["$$month", cutoff]}]},
        }},
    }


def _compile_leaf(clause: p.Predicate) -> Dict[str, Any]:
    if isinstance(clause, p.TextSearch):
        return {"$text": {"$search": clause.text}}

    field = clause.field
    if isinstance(clause, p.Equals):
        if field in _REFERENCE_FIELDS:
            return {field: {"$in": _id_variants(clause.value)}}
        return {field: clause.value}
    if isinstance(clause, p.NotEquals):
        if field in _REFERENCE_FIELDS:
            return {field: {"$nin": _id_variants(clause.value)}}
        return {field: {"$ne": clause.value}}
    if isinstance(clause, p.In):
        values = list(clause.values)
        if field in _REFERENCE_FIELDS:
            values = [variant for value in values for variant in _id_variants(value)]
        return {field: {"$in": values}}
    if isinstance(clause, p.Range):
        bounds = {}
        if clause.min is not None:
            bounds["$gte"] = clause.min
        if clause.max is not None:
            bounds["$lte"] = clause.max
        return {field: bounds}
    if isinstance(clause, p.Substring):
        return {field: {"$regex": re.escape(clause.text), "$options": "i"}}
    if isinstance(clause, p.ContainsAll):
        return {field: {"$all": list(clause.values)}}
    if isinstance(clause, p.GeoRadius):
        return _compile_geo(clause)
    if isinstance(clause, p.DeliveryBefore):
        return _compile_delivery(clause)

    raise TypeError(f"Unsupported predicate clause: {type(clause).__name__}")


def compile_predicate(predicate: p.Predicate) -> Dict[str, Any]:
    """
    Compile a predicate tree into a MongoDB filter document.

    Clauses on distinct fields are merged into one document; repeated
    fields fall back to an explicit $and.
    """
    if not isinstance(predicate, p.And):
        return _compile_leaf(predicate)

    parts = [compile_predicate(clause) for clause in predicate.clauses]
    merged: Dict[str, Any] = {}
    for part in parts:
        if any(key in merged for key in part):
            return {"$and": parts}
        merged.update(part)
    return merged


def compile_sort(sort: Union[SortKey, Sequence[SortKey], None]) -> List[tuple]:
    if sort is None:
        return []
    keys = [sort] if isinstance(sort, SortKey) else list(sort)
    return [(key.field, DESCENDING if key.descending else ASCENDING) for key in keys]


class MongoListingStore:
    """Listing store on the ``properties`` collection"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[LISTINGS_COLLECTION]

    async def create_indexes(self) -> None:
        try:
            await self._ensure_text_index()
            await _ensure_index(self.collection, [(p.VALIDATED, ASCENDING), (p.TYPE, ASCENDING)])
            await _ensure_index(self.collection, p.CITY)
            await _ensure_index(self.collection, p.PRICE)
            await _ensure_index(self.collection, [(p.CREATED_AT, DESCENDING)])
            await _ensure_index(self.collection, [(p.VIEWS, DESCENDING)])
            await _ensure_index(self.collection, p.PROMOTER)
            await _ensure_index(self.collection, [(f"{p.COORDINATES}.lat", ASCENDING),
                                                  (f"{p.COORDINATES}.lng", ASCENDING)])
            logger.info("Listing indexes created/verified")
        except PyMongoError as e:
            logger.error(f"Failed to create listing indexes: {e}")
            raise StoreError(str(e)) from e

    async def _ensure_text_index(self) -> None:
        """A collection holds at most one text index; an existing one is kept as is."""
        indexes = await self.collection.index_information()
        for name, info in indexes.items():
            if any(kind == TEXT for _, kind in info["key"]):
                logger.info(f"Using existing text index {name}")
                return
        await _ensure_index(self.collection, [("title", TEXT), ("description", TEXT)], default_language="french")

    async def find(
        self,
        predicate: p.Predicate,
        sort: Union[SortKey, Sequence[SortKey], None] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Listing]:
        query = compile_predicate(predicate)
        try:
            if p.find_clause(predicate, p.TextSearch) is not None:
                cursor = self.collection.find(query, {"score": _TEXT_SCORE})
                cursor = cursor.sort([("score", _TEXT_SCORE)])
            else:
                cursor = self.collection.find(query)
                order = compile_sort(sort)
                if order:
                    cursor = cursor.sort(order)
            if skip:
                cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"Listing query failed: {e}")
            raise StoreError(str(e)) from e
        return [Listing.model_validate(doc) for doc in documents]

    async def count(self, predicate: p.Predicate) -> int:
        try:
            return await self.collection.count_documents(compile_predicate(predicate))
        except PyMongoError as e:
            logger.error(f"Listing count failed: {e}")
            raise StoreError(str(e)) from e

    async def find_by_id(self, listing_id: str) -> Optional[Listing]:
        try:
            document = await self.collection.find_one({p.ID: {"$in": _id_variants(listing_id)}})
        except PyMongoError as e:
            logger.error(f"Failed to load listing {listing_id}: {e}")
            raise StoreError(str(e)) from e
        return Listing.model_validate(document) if document else None

    async def find_by_ids(self, listing_ids: Sequence[str], validated_only: bool = True) -> List[Listing]:
        variants = [v for lid in listing_ids for v in _id_variants(lid)]
        query: Dict[str, Any] = {p.ID: {"$in": variants}}
        if validated_only:
            query[p.VALIDATED] = True
        try:
            documents = await self.collection.find(query).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Failed to load listings by id: {e}")
            raise StoreError(str(e)) from e
        return [Listing.model_validate(doc) for doc in documents]

    async def increment_views(self, listing_id: str) -> Optional[int]:
        try:
            document = await self.collection.find_one_and_update(
                {p.ID: {"$in": _id_variants(listing_id)}, p.VALIDATED: True},
                {"$inc": {p.VIEWS: 1}},
                projection={p.VIEWS: 1},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Failed to increment views for {listing_id}: {e}")
            raise StoreError(str(e)) from e
        return document[p.VIEWS] if document else None

    async def scan(self, predicate: p.Predicate) -> AsyncIterator[Listing]:
        try:
            async for document in self.collection.find(compile_predicate(predicate)):
                yield Listing.model_validate(document)
        except PyMongoError as e:
            logger.error(f"Listing scan failed: {e}")
            raise StoreError(str(e)) from e

    async def save(self, listing: Listing) -> Listing:
        try:
            await self.collection.replace_one({p.ID: listing.id}, listing.to_document(), upsert=True)
        except PyMongoError as e:
            logger.error(f"Failed to save listing {listing.id}: {e}")
            raise StoreError(str(e)) from e
        return listing

    async def update_fields(self, listing_id: str, fields: dict) -> bool:
        try:
            result = await self.collection.update_one({p.ID: {"$in": _id_variants(listing_id)}}, {"$set": fields})
        except PyMongoError as e:
            logger.error(f"Failed to update listing {listing_id}: {e}")
            raise StoreError(str(e)) from e
        return result.matched_count > 0


class MongoPromoterStore:
    """Promoter store on the ``promoters`` collection"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[PROMOTERS_COLLECTION]

    async def create_indexes(self) -> None:
        try:
            await _ensure_index(self.collection, [("verified", ASCENDING), ("rating", DESCENDING)])
            await _ensure_index(self.collection, "name")
        except PyMongoError as e:
            logger.error(f"Failed to create promoter indexes: {e}")
            raise StoreError(str(e)) from e

    async def _find(self, query: dict, sort=None, skip: int = 0, limit: Optional[int] = None) -> List[Promoter]:
        try:
            cursor = self.collection.find(query)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit is not None:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"Promoter query failed: {e}")
            raise StoreError(str(e)) from e
        return [Promoter.model_validate(doc) for doc in documents]

    async def find_by_id(self, promoter_id: str) -> Optional[Promoter]:
        found = await self._find({p.ID: {"$in": _id_variants(promoter_id)}}, limit=1)
        return found[0] if found else None

    async def find_by_ids(self, promoter_ids: Sequence[str]) -> List[Promoter]:
        variants = [v for pid in promoter_ids for v in _id_variants(pid)]
        return await self._find({p.ID: {"$in": variants}})

    async def find_verified(self, skip: int = 0, limit: Optional[int] = None) -> List[Promoter]:
        return await self._find({"verified": True}, sort=[("rating", DESCENDING)], skip=skip, limit=limit)

    async def count_verified(self) -> int:
        try:
            return await self.collection.count_documents({"verified": True})
        except PyMongoError as e:
            logger.error(f"Promoter count failed: {e}")
            raise StoreError(str(e)) from e

    async def verified_ids(self) -> List[str]:
        try:
            ids = await self.collection.distinct(p.ID, {"verified": True})
        except PyMongoError as e:
            logger.error(f"Failed to list verified promoters: {e}")
            raise StoreError(str(e)) from e
        return [str(pid) for pid in ids]

    async def search(self, text: str, limit: Optional[int] = None) -> List[Promoter]:
        pattern = {"$regex": re.escape(text), "$options": "i"}
        query = {"$or": [{"name": pattern}, {"contact.phone": pattern}, {"contact.email": pattern}]}
        return await self._find(query, limit=limit)

    async def save(self, promoter: Promoter) -> Promoter:
        document = promoter.to_document()
        document.pop(p.ID)
        try:
            result = await self.collection.update_one(
                {p.ID: {"$in": _id_variants(promoter.id)}}, {"$set": document}
            )
            if result.matched_count == 0:
                await self.collection.insert_one({p.ID: promoter.id, **document})
        except PyMongoError as e:
            logger.error(f"Failed to save promoter {promoter.id}: {e}")
            raise StoreError(str(e)) from e
        return promoter
