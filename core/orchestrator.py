"""
Registration Orchestrator - Upsert-and-link workflow for one wholesale submission.

This module turns one Registrant into a consistent set of remote records:
customer, company, company contact, role assignment, location address and tax
id. It runs as an explicit linear state machine; each state's handler does its
remote calls, records WorkflowEvents and returns the next state.

  RESOLVING_IDENTITY
      Look the customer up by email. If found, update it in place: names,
      phone only when one was submitted, tags merged with "wholesale".

  RESOLVING_COMPANY
      Only when a company email was submitted: scan companies for a
      custom.companyEmail metafield with that value.

  CREATING_OR_REUSING_COMPANY
      Reuse a matched company as is (no inline contact, no metafield write).
      Otherwise create one. A new customer is attached inline as the company
      contact; an existing customer is not (the API rejects a contact whose
      email already belongs to a customer) and is linked in LINKING_CONTACT.
      A newly created company gets the companyEmail metafield.
      Failure here is fatal: CompanyCreationError.

  ASSIGNING_ADDRESS
      Only when address1 was submitted: take the company's first location,
      rename it to the submitted location label, assign the shipping address.

  ASSIGNING_TAX
      Only when a tax id was submitted and ASSIGNING_ADDRESS found a location.
      "Mutation doesn't exist" errors (unsupported API version or plan) are
      soft: logged, never reported to the caller.

  CREATING_OR_REUSING_CUSTOMER
      Existing customer: nothing to do. New customer whose inline company
      contact produced a customer: tag it. Otherwise customerCreate; when the
      email is already taken, find the real record (three-tier search) and
      update it instead.

  LINKING_CONTACT
      Existing customer: assign as company contact, make main contact, grant
      a role at the first location. New customer on a reused company: assign
      as company contact. New customer on a new company: already linked inline.

  DONE

Every failure after a company id exists is recorded and the workflow goes
on. success is True whenever a company id exists.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import requests

from config import COMPANY_EMAIL_KEY, COMPANY_EMAIL_NAMESPACE, COMPANY_NOTE

from . import events as ev
from .errors import CompanyCreationError, GraphQLTransportError, RegistrationError, UserErrors
from .events import EventLog
from .registrant import Registrant, redact_email
from .resolvers import CompanyResolver, IdentityResolver

logger = logging.getLogger(__name__)

# Failures a single step may absorb once a company exists.
STEP_ERRORS = (RegistrationError, requests.RequestException)

UNSUPPORTED_MUTATION_MARKER = "doesn't exist on type"


class WorkflowState(Enum):
    RESOLVING_IDENTITY = "resolving_identity"
    RESOLVING_COMPANY = "resolving_company"
    CREATING_OR_REUSING_COMPANY = "creating_or_reusing_company"
    ASSIGNING_ADDRESS = "assigning_address"
    ASSIGNING_TAX = "assigning_tax"
    CREATING_OR_REUSING_CUSTOMER = "creating_or_reusing_customer"
    LINKING_CONTACT = "linking_contact"
    DONE = "done"


def merge_tags(existing, tag: str) -> List[str]:
    """Existing tags plus tag, deduplicated, original order kept."""
    if isinstance(existing, str):
        existing = [t.strip() for t in existing.split(",")]
    merged = []
    seen = set()
    for t in list(existing or []) + [tag]:
        if t and t.lower() not in seen:
            seen.add(t.lower())
            merged.append(t)
    return merged


def customer_update_input(customer: Dict, registrant: Registrant, tag: str) -> Dict[str, Any]:
    """CustomerInput for updating an existing customer from a submission.

    Names are only sent when submitted. Phone is the submitted one when
    non-empty, else the customer's current phone; it is never cleared.
    """
    update = {"id": customer["id"], "tags": merge_tags(customer.get("tags"), tag)}
    if registrant.first_name:
        update["firstName"] = registrant.first_name
    if registrant.last_name:
        update["lastName"] = registrant.last_name
    phone = registrant.phone or customer.get("phone")
    if phone:
        update["phone"] = phone
    return update


def choose_role(roles: Dict[str, Any]) -> Optional[Dict]:
    """Pick the role to grant a linked contact.

    Order: company default role, a role named like "buyer", a role named
    like "admin", the first role.
    """
    if roles.get("defaultRole"):
        return roles["defaultRole"]
    candidates = roles.get("roles") or []
    for fragment in ("buyer", "admin"):
        for role in candidates:
            if fragment in (role.get("name") or "").lower():
                return role
    return candidates[0] if candidates else None


@dataclass
class RegistrationContext:
    """Mutable state carried between workflow states for one submission."""

    registrant: Registrant
    events: EventLog = field(default_factory=EventLog)
    state: WorkflowState = WorkflowState.RESOLVING_IDENTITY

    existing_customer: Optional[Dict] = None
    customer_id: Optional[str] = None
    customer_created: bool = False
    customer_error: Optional[str] = None

    matched_company: Optional[Dict] = None
    company_id: Optional[str] = None
    company_created: bool = False
    inline_contact: bool = False
    inline_contact_customer_id: Optional[str] = None

    location_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def company_reused(self) -> bool:
        return self.matched_company is not None


@dataclass
class RegistrationResult:
    success: bool
    company_id: Optional[str]
    customer_id: Optional[str]
    message: str
    customer_error: Optional[str] = None
    company_created: bool = False
    customer_created: bool = False
    warnings: List[str] = field(default_factory=list)
    events: EventLog = field(default_factory=EventLog)

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "companyId": self.company_id,
            "customerId": self.customer_id,
            "message": self.message,
            "customerError": self.customer_error,
            "warnings": list(self.warnings),
        }


class RegistrationOrchestrator:
    """Runs the upsert-and-link workflow against a remote directory.

    Attributes:
        directory: ShopifyDirectory (or any object with the same methods).
        default_country: Country code used when an address has none.
        wholesale_tag: Tag merged onto every registered customer.
        identity_resolver / company_resolver: Lookup helpers.
        clock: Returns epoch seconds; used for the company externalId.
    """

    def __init__(
        self,
        directory,
        default_country: str = "US",
        wholesale_tag: str = "wholesale",
        company_scan_limit: int = 50,
        customer_scan_limit: int = 250,
        clock: Callable[[], float] = time.time,
    ):
        self.directory = directory
        self.default_country = default_country
        self.wholesale_tag = wholesale_tag
        self.identity_resolver = IdentityResolver(directory, customer_scan_limit)
        self.company_resolver = CompanyResolver(directory, company_scan_limit)
        self.clock = clock

        self._handlers = {
            WorkflowState.RESOLVING_IDENTITY: self._resolve_identity,
            WorkflowState.RESOLVING_COMPANY: self._resolve_company,
            WorkflowState.CREATING_OR_REUSING_COMPANY: self._create_or_reuse_company,
            WorkflowState.ASSIGNING_ADDRESS: self._assign_address,
            WorkflowState.ASSIGNING_TAX: self._assign_tax,
            WorkflowState.CREATING_OR_REUSING_CUSTOMER: self._create_or_reuse_customer,
            WorkflowState.LINKING_CONTACT: self._link_contact,
        }

    def run(self, registrant: Registrant) -> RegistrationResult:
        """Execute the workflow for one submission.

        Raises:
            CompanyCreationError: companyCreate failed (nothing was linked).
            GraphQLTransportError / requests.RequestException: a lookup failed
                before any company existed.
        """
        ctx = RegistrationContext(registrant=registrant)
        logger.info("Registration started: %s", registrant.summary())

        while ctx.state is not WorkflowState.DONE:
            handler = self._handlers[ctx.state]
            logger.debug("State: %s", ctx.state.value)
            ctx.state = handler(ctx)

        result = self._aggregate(ctx)
        logger.info(
            "Registration finished: success=%s companyId=%s customerId=%s customerError=%s",
            result.success, result.company_id, result.customer_id, result.customer_error,
        )
        return result

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _resolve_identity(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant
        customer = self.identity_resolver.resolve(reg.user_email)

        if not customer:
            ctx.events.emit("resolve_identity", ev.NOT_FOUND, email=redact_email(reg.user_email))
            return WorkflowState.RESOLVING_COMPANY

        ctx.existing_customer = customer
        ctx.customer_id = customer["id"]
        ctx.events.emit("resolve_identity", ev.OK, customerId=customer["id"])

        update = customer_update_input(customer, reg, self.wholesale_tag)
        try:
            self.directory.update_customer(update)
            ctx.events.emit("update_existing_customer", ev.OK, customerId=customer["id"])
        except STEP_ERRORS as e:
            ctx.events.emit("update_existing_customer", ev.ERROR, detail=str(e), customerId=customer["id"])
            ctx.warnings.append(f"Customer details could not be updated: {e}")

        return WorkflowState.RESOLVING_COMPANY

    def _resolve_company(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant
        if not reg.normalized_company_email:
            ctx.events.emit("resolve_company", ev.SKIPPED, detail="no company email")
            return WorkflowState.CREATING_OR_REUSING_COMPANY

        company = self.company_resolver.resolve(reg.company_email)
        if company:
            ctx.matched_company = company
            ctx.events.emit("resolve_company", ev.OK, companyId=company["id"])
        else:
            ctx.events.emit("resolve_company", ev.NOT_FOUND, companyEmail=redact_email(reg.company_email))
        return WorkflowState.CREATING_OR_REUSING_COMPANY

    def _create_or_reuse_company(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant

        if ctx.company_reused:
            ctx.company_id = ctx.matched_company["id"]
            ctx.events.emit("reuse_company", ev.OK, companyId=ctx.company_id)
            return WorkflowState.ASSIGNING_ADDRESS

        company_input = {
            "company": {
                "name": reg.company_name,
                "externalId": f"ext-{int(self.clock() * 1000)}",
                "note": COMPANY_NOTE,
            }
        }
        if ctx.existing_customer is None:
            company_input["companyContact"] = {
                "email": reg.normalized_user_email,
                "firstName": reg.first_name,
                "lastName": reg.last_name,
            }
            ctx.inline_contact = True

        try:
            company = self.directory.create_company(company_input)
        except GraphQLTransportError as e:
            ctx.events.emit("create_company", ev.ERROR, detail=str(e))
            raise CompanyCreationError("GraphQL errors in company creation", e.errors) from e
        except UserErrors as e:
            ctx.events.emit("create_company", ev.ERROR, detail=e.first_message)
            raise CompanyCreationError("Failed to create company", e.errors) from e

        ctx.company_id = company.get("id")
        if not ctx.company_id:
            ctx.events.emit("create_company", ev.ERROR, detail="no company id returned")
            return WorkflowState.DONE

        ctx.company_created = True
        ctx.inline_contact_customer_id = company.get("contactCustomerId") if ctx.inline_contact else None
        ctx.events.emit(
            "create_company", ev.OK,
            companyId=ctx.company_id, inlineContact=ctx.inline_contact,
        )

        if reg.normalized_company_email:
            try:
                self.directory.set_company_metafield(
                    ctx.company_id, COMPANY_EMAIL_NAMESPACE, COMPANY_EMAIL_KEY,
                    reg.normalized_company_email,
                )
                ctx.events.emit("set_company_email", ev.OK, companyId=ctx.company_id)
            except STEP_ERRORS as e:
                ctx.warnings.append(f"Company email could not be saved: {e}")
                ctx.events.emit("set_company_email", ev.ERROR, detail=str(e), companyId=ctx.company_id)

        return WorkflowState.ASSIGNING_ADDRESS

    def _assign_address(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant
        if not reg.has_address:
            ctx.events.emit("assign_address", ev.SKIPPED, detail="no address")
            return WorkflowState.ASSIGNING_TAX

        location = self._first_location(ctx)
        if not location:
            return WorkflowState.ASSIGNING_TAX

        if reg.location:
            try:
                self.directory.rename_location(ctx.location_id, reg.location)
                ctx.events.emit("rename_location", ev.OK, locationId=ctx.location_id)
            except STEP_ERRORS as e:
                ctx.warnings.append(f"Location name could not be saved: {e}")
                ctx.events.emit("rename_location", ev.ERROR, detail=str(e), locationId=ctx.location_id)

        try:
            self.directory.assign_location_address(
                ctx.location_id, reg.address_input(self.default_country), ["SHIPPING"]
            )
            ctx.events.emit("assign_address", ev.OK, locationId=ctx.location_id)
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Address could not be saved: {e}")
            ctx.events.emit("assign_address", ev.ERROR, detail=str(e), locationId=ctx.location_id)

        return WorkflowState.ASSIGNING_TAX

    def _assign_tax(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant
        if not reg.tax_id or not ctx.location_id or not reg.has_address:
            ctx.events.emit("assign_tax_id", ev.SKIPPED)
            return WorkflowState.CREATING_OR_REUSING_CUSTOMER

        try:
            self.directory.set_location_tax_id(ctx.location_id, reg.tax_id)
            ctx.events.emit("assign_tax_id", ev.OK, locationId=ctx.location_id)
        except GraphQLTransportError as e:
            if e.mentions(UNSUPPORTED_MUTATION_MARKER):
                logger.info("Tax settings not supported for this store; tax id %r not saved", reg.tax_id)
                ctx.events.emit("assign_tax_id", ev.SOFT_ERROR, detail="unsupported", locationId=ctx.location_id)
            else:
                ctx.warnings.append(f"Tax ID could not be saved: {e}")
                ctx.events.emit("assign_tax_id", ev.ERROR, detail=str(e), locationId=ctx.location_id)
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Tax ID could not be saved: {e}")
            ctx.events.emit("assign_tax_id", ev.ERROR, detail=str(e), locationId=ctx.location_id)

        return WorkflowState.CREATING_OR_REUSING_CUSTOMER

    def _create_or_reuse_customer(self, ctx: RegistrationContext) -> WorkflowState:
        reg = ctx.registrant

        if ctx.existing_customer is not None:
            ctx.events.emit("reuse_customer", ev.OK, customerId=ctx.customer_id)
            return WorkflowState.LINKING_CONTACT

        if ctx.inline_contact_customer_id:
            # The inline company contact created the customer; only tags/phone are missing.
            ctx.customer_id = ctx.inline_contact_customer_id
            ctx.customer_created = True
            tag_input = {"id": ctx.customer_id, "tags": [self.wholesale_tag]}
            if reg.phone:
                tag_input["phone"] = reg.phone
            try:
                self.directory.update_customer(tag_input)
                ctx.events.emit("tag_contact_customer", ev.OK, customerId=ctx.customer_id)
            except STEP_ERRORS as e:
                ctx.warnings.append(f"Customer details could not be saved: {e}")
                ctx.events.emit("tag_contact_customer", ev.ERROR, detail=str(e), customerId=ctx.customer_id)
            return WorkflowState.LINKING_CONTACT

        customer_input = {
            "firstName": reg.first_name,
            "lastName": reg.last_name,
            "email": reg.normalized_user_email,
            "tags": [self.wholesale_tag],
        }
        if reg.phone:
            customer_input["phone"] = reg.phone

        try:
            customer = self.directory.create_customer(customer_input)
            ctx.customer_id = customer.get("id")
            ctx.customer_created = True
            ctx.events.emit("create_customer", ev.OK, customerId=ctx.customer_id)
        except UserErrors as e:
            if e.is_taken():
                ctx.events.emit("create_customer", ev.SOFT_ERROR, detail=e.first_message)
                self._recover_taken_customer(ctx, e)
            else:
                ctx.customer_error = e.first_message
                ctx.events.emit("create_customer", ev.ERROR, detail=e.first_message)
        except GraphQLTransportError as e:
            ctx.customer_error = "GraphQL errors in customer creation"
            ctx.events.emit("create_customer", ev.ERROR, detail=str(e))
        except requests.RequestException as e:
            ctx.customer_error = str(e)
            ctx.events.emit("create_customer", ev.ERROR, detail=str(e))

        return WorkflowState.LINKING_CONTACT

    def _recover_taken_customer(self, ctx: RegistrationContext, taken: UserErrors):
        """Locate the customer that owns the email and update it in place."""
        reg = ctx.registrant
        try:
            customer = self.identity_resolver.find_existing(reg.user_email)
        except STEP_ERRORS as e:
            ctx.customer_error = taken.first_message
            ctx.events.emit("find_existing_customer", ev.ERROR, detail=str(e))
            return

        if not customer:
            ctx.customer_error = taken.first_message
            ctx.events.emit("find_existing_customer", ev.NOT_FOUND, email=redact_email(reg.user_email))
            return

        ctx.events.emit("find_existing_customer", ev.OK, customerId=customer["id"])
        try:
            self.directory.update_customer(customer_update_input(customer, reg, self.wholesale_tag))
        except STEP_ERRORS as e:
            ctx.customer_error = e.first_message if isinstance(e, UserErrors) else str(e)
            ctx.events.emit("update_found_customer", ev.ERROR, detail=str(e), customerId=customer["id"])
            return

        ctx.customer_id = customer["id"]
        ctx.events.emit("update_found_customer", ev.OK, customerId=customer["id"])

    def _link_contact(self, ctx: RegistrationContext) -> WorkflowState:
        if not (ctx.company_id and ctx.customer_id):
            ctx.events.emit(
                "link_contact", ev.SKIPPED, detail="missing ids",
                companyId=ctx.company_id, customerId=ctx.customer_id,
            )
            return WorkflowState.DONE

        if ctx.existing_customer is not None:
            self._link_existing_customer(ctx)
        elif ctx.company_reused:
            self._assign_contact(ctx)
        else:
            ctx.events.emit("link_contact", ev.SKIPPED, detail="linked by company creation")

        return WorkflowState.DONE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _first_location(self, ctx: RegistrationContext) -> Optional[Dict]:
        try:
            locations = self.directory.get_company_locations(ctx.company_id)
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Company location could not be loaded: {e}")
            ctx.events.emit("fetch_location", ev.ERROR, detail=str(e), companyId=ctx.company_id)
            return None

        if not locations:
            ctx.events.emit("fetch_location", ev.NOT_FOUND, companyId=ctx.company_id)
            return None

        ctx.location_id = locations[0]["id"]
        ctx.events.emit("fetch_location", ev.OK, locationId=ctx.location_id)
        return locations[0]

    def _assign_contact(self, ctx: RegistrationContext) -> Optional[str]:
        try:
            contact_id = self.directory.assign_customer_as_contact(ctx.company_id, ctx.customer_id)
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Customer could not be added to the company: {e}")
            ctx.events.emit(
                "assign_contact", ev.ERROR, detail=str(e),
                companyId=ctx.company_id, customerId=ctx.customer_id,
            )
            return None

        ctx.events.emit("assign_contact", ev.OK, companyId=ctx.company_id, contactId=contact_id)
        return contact_id

    def _link_existing_customer(self, ctx: RegistrationContext):
        contact_id = self._assign_contact(ctx)
        if not contact_id:
            ctx.events.emit("assign_main_contact", ev.SKIPPED, detail="no contact id")
            ctx.events.emit("assign_role", ev.SKIPPED, detail="no contact id")
            return

        try:
            self.directory.assign_main_contact(ctx.company_id, contact_id)
            ctx.events.emit("assign_main_contact", ev.OK, companyId=ctx.company_id, contactId=contact_id)
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Main contact could not be set: {e}")
            ctx.events.emit("assign_main_contact", ev.ERROR, detail=str(e), contactId=contact_id)

        self._assign_role(ctx, contact_id)

    def _assign_role(self, ctx: RegistrationContext, contact_id: str):
        try:
            role = choose_role(self.directory.get_company_roles(ctx.company_id))
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Company roles could not be loaded: {e}")
            ctx.events.emit("assign_role", ev.ERROR, detail=str(e), companyId=ctx.company_id)
            return

        if not role:
            ctx.events.emit("assign_role", ev.NOT_FOUND, detail="no roles", companyId=ctx.company_id)
            return

        if not ctx.location_id and not self._first_location(ctx):
            ctx.events.emit("assign_role", ev.SKIPPED, detail="no location", roleId=role["id"])
            return

        try:
            assignment_id = self.directory.assign_contact_role(contact_id, role["id"], ctx.location_id)
            ctx.events.emit(
                "assign_role", ev.OK,
                contactId=contact_id, roleId=role["id"], locationId=ctx.location_id,
                assignmentId=assignment_id,
            )
        except STEP_ERRORS as e:
            ctx.warnings.append(f"Role could not be assigned: {e}")
            ctx.events.emit("assign_role", ev.ERROR, detail=str(e), roleId=role["id"])

    def _aggregate(self, ctx: RegistrationContext) -> RegistrationResult:
        if ctx.company_id and ctx.customer_id:
            message = "Company and customer created successfully!"
        elif ctx.company_id and ctx.customer_error:
            message = f"Company created successfully! Note: {ctx.customer_error}"
        elif ctx.company_id:
            message = "Company created successfully!"
        else:
            message = "Failed to create company."

        return RegistrationResult(
            success=bool(ctx.company_id),
            company_id=ctx.company_id,
            customer_id=ctx.customer_id,
            message=message,
            customer_error=ctx.customer_error,
            company_created=ctx.company_created,
            customer_created=ctx.customer_created,
            warnings=list(ctx.warnings),
            events=ctx.events,
        )
