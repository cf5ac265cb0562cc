"""
Review invitation workflow.

An admin issues a single-use, time-limited link; a guest checks it, then
submits exactly one review against it; an admin approves the review before it
is shown publicly.
"""
import logging
from collections import namedtuple

from sqlalchemy.exc import IntegrityError

from models import db, Review, ReviewLink
from utils.errors import BadRequest, Conflict, InvalidLink, NotFound
from utils.helpers import clean_text, generate_link_token, parse_datetime, require_fields, utcnow

logger = logging.getLogger(__name__)

HOMEPAGE_REVIEW_COUNT = 4

TOKEN_EXPIRED = 'expired'
TOKEN_USED = 'already used'

TokenStatus = namedtuple('TokenStatus', ['valid', 'reason'], defaults=[None])


# Invitation links

def create_invitation(expires_at, guest_name=None):
    """Issue a new unused link. The expiry is not checked against now."""
    expires = parse_datetime(expires_at)
    if expires is None:
        raise BadRequest('invalid_expires_at', detail=f"expiresAt={expires_at!r}")

    link = ReviewLink(
        token=generate_link_token(),
        guest_name=clean_text(guest_name) or None,
        expires_at=expires,
    )
    db.session.add(link)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise Conflict(detail='duplicate review link token') from e

    logger.info("[Reviews] Created link %s for %s, expires %s", link.id, link.guest_name or 'guest', link.expires_at)
    return link

def list_invitations():
    return ReviewLink.query.order_by(ReviewLink.created_at.desc(), ReviewLink.id.desc()).all()

def delete_invitation(link_id):
    link = db.session.get(ReviewLink, link_id)
    if link is None:
        raise NotFound('link_not_found')
    db.session.delete(link)
    db.session.commit()
    logger.info("[Reviews] Deleted link %s", link_id)

def check_token(token, now=None):
    """Report whether a token could currently be used. Never modifies the link."""
    token = clean_text(token)
    if not token:
        raise BadRequest('token_missing')

    link = ReviewLink.query.filter_by(token=token).first()
    if link is None:
        raise NotFound('link_not_found')

    now = now or utcnow()
    if link.expires_at < now:
        return TokenStatus(False, TOKEN_EXPIRED)
    if link.used:
        return TokenStatus(False, TOKEN_USED)
    return TokenStatus(True)


# Submission

def parse_submission(data):
    """Validate a raw submission payload into keyword arguments for submit_review"""
    token, name, location, date, comment = require_fields(
        data, 'token', 'name', 'location', 'date', 'comment')

    rating = data.get('rating')
    if rating is None or clean_text(rating) == '':
        rating = None
    else:
        try:
            rating = int(clean_text(rating))
        except ValueError:
            raise BadRequest('invalid_rating', detail=f"rating={data.get('rating')!r}")

    fields = {
        'token': token,
        'name': name,
        'location': location,
        'date': date,
        'comment': comment,
        'rating': rating,
        'image_url': clean_text(data.get('imageUrl')) or None,
    }

    columns = Review.__table__.columns
    too_long = [
        field for field, value in fields.items()
        if isinstance(value, str) and columns[field].type.length is not None
        and len(value) > columns[field].type.length
    ]
    if too_long:
        raise BadRequest('field_too_long', detail=f"too long: {', '.join(too_long)}")
    return fields

def submit_review(token, name, location, date, comment, rating=None, image_url=None, now=None):
    """Create a review and consume its link in one transaction.

    The link is claimed with a conditional UPDATE (unused and unexpired at the
    moment of writing), so of two concurrent submissions only one can win.
    """
    link = ReviewLink.query.filter_by(token=token).first()
    if link is None:
        raise InvalidLink('link_invalid', detail='unknown token')

    now = now or utcnow()
    claimed = (
        ReviewLink.query
        .filter(
            ReviewLink.id == link.id,
            ReviewLink.used.is_(False),
            ReviewLink.expires_at > now,
        )
        .update({ReviewLink.used: True}, synchronize_session=False)
    )
    if claimed != 1:
        reason = 'link_expired' if link.expires_at <= now else 'link_used'
        db.session.rollback()
        logger.info("[Reviews] Rejected submission for link %s: %s", link.id, reason)
        raise InvalidLink(reason)

    review = Review(
        token=token,
        name=name,
        location=location,
        date=date,
        comment=comment,
        rating=rating,
        image_url=image_url,
        approved=False,
    )
    db.session.add(review)
    db.session.commit()

    logger.info("[Reviews] Review %s submitted with link %s", review.id, link.id)
    return review


# Moderation

def _get_review(review_id):
    review = db.session.get(Review, review_id)
    if review is None:
        raise NotFound('review_not_found')
    return review

def set_approval(review_id, approved):
    review = _get_review(review_id)
    review.approved = approved
    db.session.commit()
    logger.info("[Reviews] Review %s approved=%s", review_id, approved)
    return review

def approve(review_id):
    return set_approval(review_id, True)

def unapprove(review_id):
    return set_approval(review_id, False)

def delete_review(review_id):
    review = _get_review(review_id)
    db.session.delete(review)
    db.session.commit()
    logger.info("[Reviews] Deleted review %s", review_id)


# Read paths

def _newest_first(query):
    return query.order_by(Review.created_at.desc(), Review.id.desc())

def latest_approved(limit=HOMEPAGE_REVIEW_COUNT):
    return _newest_first(Review.query.filter(Review.approved.is_(True))).limit(limit).all()

def all_approved():
    return _newest_first(Review.query.filter(Review.approved.is_(True))).all()

def all_reviews():
    return _newest_first(Review.query).all()
