"""
Import denormalized person/family documents into the link tables.

Document stores keep every relation twice (parentIds on the child,
childIds on the parent, ...) with no guarantee both copies were written.
The importer unions both copies into one row per relation and reports
every pair that was only recorded on one side.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kinbook.constants import LinkKind
from kinbook.errors import BackendUnavailable, PartialLinkFailure
from kinbook.models.family import Family, FamilyMember
from kinbook.models.person import Person, build_search_name
from kinbook.models.person_link import PersonLink
from kinbook.schemas.import_schema import ImportBundle


logger = logging.getLogger(__name__)

FAMILY_MEMBER = "family_member"

_PERSON_FIELDS = (
    "first_name", "middle_name", "last_name", "preferred_name",
    "birth_date", "death_date",
    "email", "phone", "address", "city", "state", "country",
    "profile_photo_url", "cover_photo_url", "facebook_url",
    "instagram_url", "church_url", "website_url",
    "bio", "notes", "user_id", "created_by", "updated_at",
)


@dataclass
class ImportReport:
    people_created: int = 0
    families_created: int = 0
    links_created: int = 0
    memberships_created: int = 0
    asymmetries: list[PartialLinkFailure] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)


# ============================================================
# PAIR COLLECTION
# ============================================================

def _collect_pairs(bundle: ImportBundle):
    """
    Returns {(kind, a, b): sides} where sides counts how many of the two
    documents recorded the relation. Spouse pairs are keyed sorted.
    """
    pairs: dict[tuple[str, str, str], set[str]] = {}

    def record(key, side):
        pairs.setdefault(key, set()).add(side)

    parent_child = LinkKind.PARENT_CHILD.value
    spouse = LinkKind.SPOUSE.value

    for doc in bundle.people:
        for child_id in doc.child_ids:
            record((parent_child, doc.id, child_id), "parent")
        for parent_id in doc.parent_ids:
            record((parent_child, parent_id, doc.id), "child")
        for spouse_id in doc.spouse_ids:
            low, high = sorted((doc.id, spouse_id))
            record((spouse, low, high), doc.id)
        for family_id in doc.family_ids:
            record((FAMILY_MEMBER, doc.id, family_id), "person")

    for doc in bundle.families:
        for person_id in doc.members:
            record((FAMILY_MEMBER, person_id, doc.id), "family")

    return pairs


def _is_self_link(kind: str, a: str, b: str) -> bool:
    # Membership keys pair a person id with a family id; equal ids are not a loop
    return kind != FAMILY_MEMBER and a == b


def find_asymmetric_links(bundle: ImportBundle) -> list[PartialLinkFailure]:
    """Relations that only one of the two documents knows about."""
    return [
        PartialLinkFailure(kind, a, b)
        for (kind, a, b), sides in _collect_pairs(bundle).items()
        if len(sides) < 2 and not _is_self_link(kind, a, b)
    ]


# ============================================================
# IMPORT
# ============================================================

def import_documents(db: Session, bundle: ImportBundle) -> ImportReport:
    report = ImportReport()

    asymmetries = find_asymmetric_links(bundle)
    for failure in asymmetries:
        logger.warning("Asymmetric relation, importing as linked: %s", failure.message)
    report.asymmetries = asymmetries

    try:
        # ---------------------------
        # Entities (existing ids are left untouched)
        # ---------------------------
        known_people = {row[0] for row in db.query(Person.id).all()}
        known_families = {row[0] for row in db.query(Family.id).all()}

        for doc in bundle.people:
            if doc.id in known_people:
                continue
            values = {name: getattr(doc, name) for name in _PERSON_FIELDS}
            person = Person(
                id=doc.id,
                role_type=doc.role_type.value,
                search_name=build_search_name(doc.first_name, doc.last_name),
                **values,
            )
            if doc.created_at:
                person.created_at = doc.created_at
            db.add(person)
            known_people.add(doc.id)
            report.people_created += 1

        for doc in bundle.families:
            if doc.id in known_families:
                continue
            family = Family(
                id=doc.id,
                name=doc.name,
                search_name=doc.name.lower().strip(),
                description=doc.description,
                origin=doc.origin,
                created_by=doc.created_by,
            )
            if doc.created_at:
                family.created_at = doc.created_at
            db.add(family)
            known_families.add(doc.id)
            report.families_created += 1

        db.flush()

        # ---------------------------
        # Relations
        # ---------------------------
        for kind, a, b in _collect_pairs(bundle):
            if _is_self_link(kind, a, b):
                report.dangling.append(f"{kind}:{a}->{b}")
                logger.warning("Skipping self-referencing %s link on %s", kind, a)
                continue

            if kind == FAMILY_MEMBER:
                if a not in known_people or b not in known_families:
                    report.dangling.append(f"{kind}:{a}->{b}")
                    logger.warning("Skipping membership %s -> %s: unknown id", a, b)
                    continue

                exists = db.query(FamilyMember).filter(
                    FamilyMember.person_id == a,
                    FamilyMember.family_id == b,
                ).first()
                if exists is None:
                    db.add(FamilyMember(person_id=a, family_id=b, created_by="import"))
                    report.memberships_created += 1
                continue

            if a not in known_people or b not in known_people:
                report.dangling.append(f"{kind}:{a}->{b}")
                logger.warning("Skipping %s link %s -> %s: unknown id", kind, a, b)
                continue

            exists = db.query(PersonLink).filter(
                PersonLink.kind == kind,
                PersonLink.from_person_id == a,
                PersonLink.to_person_id == b,
            ).first()
            if exists is None:
                db.add(PersonLink(kind=kind, from_person_id=a, to_person_id=b, created_by="import"))
                report.links_created += 1

        db.commit()

    except SQLAlchemyError as exc:
        db.rollback()
        raise BackendUnavailable(f"Import failed: {exc}") from exc

    logger.info(
        "Imported %d people, %d families, %d links, %d memberships (%d asymmetric, %d dangling)",
        report.people_created,
        report.families_created,
        report.links_created,
        report.memberships_created,
        len(report.asymmetries),
        len(report.dangling),
    )
    return report
