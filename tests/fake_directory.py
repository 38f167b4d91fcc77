"""In-memory stand-in for core.directory.ShopifyDirectory.

Keeps customers, companies, locations and roles in dicts and records every
call as (method_name, args) in `calls`, so tests can assert on the exact
sequence of remote operations. `failures` maps a method name to an exception
raised the next time that method is called.
"""

from core.errors import UserErrors


class FakeDirectory:

    def __init__(self):
        self.calls = []
        self.failures = {}
        self.customers = []
        self.companies = []
        self.locations = {}
        self.roles = {}
        self.addresses = {}
        self.tax_ids = {}
        self.contacts = {}
        self.main_contacts = {}
        self.role_assignments = []
        self.search_enabled = True
        self.return_contact_customer = True
        self._next_id = 1
        self.close_count = 0

    # -- helpers ------------------------------------------------------

    def _gid(self, kind):
        gid = f"gid://shopify/{kind}/{self._next_id}"
        self._next_id += 1
        return gid

    def _record(self, method, *args):
        self.calls.append((method, args))
        failure = self.failures.pop(method, None)
        if failure is not None:
            raise failure

    def close(self):
        self.close_count += 1

    def call_names(self):
        return [name for name, _ in self.calls]

    def args_of(self, method):
        return [args for name, args in self.calls if name == method]

    def add_customer(self, email, first="", last="", phone=None, tags=None):
        customer = {
            "id": self._gid("Customer"),
            "email": email,
            "firstName": first,
            "lastName": last,
            "phone": phone,
            "tags": list(tags or []),
        }
        self.customers.append(customer)
        return customer

    def add_company(self, name, company_email=None, location_name=None, roles=None, default_role=None):
        company = {"id": self._gid("Company"), "name": name, "mainContactId": None, "metafields": []}
        if company_email is not None:
            company["metafields"].append(
                {"namespace": "custom", "key": "companyEmail", "value": company_email}
            )
        self.companies.append(company)
        self.locations[company["id"]] = [
            {"id": self._gid("CompanyLocation"), "name": location_name or name}
        ]
        self.roles[company["id"]] = {
            "defaultRole": default_role,
            "roles": list(roles or []),
        }
        return company

    def customer_by_id(self, customer_id):
        return next(c for c in self.customers if c["id"] == customer_id)

    def _by_email(self, email):
        return next((c for c in self.customers if c["email"].lower() == email.lower()), None)

    # -- reads --------------------------------------------------------

    def find_customers(self, query, first=1):
        self._record("find_customers", query, first)
        if not self.search_enabled:
            return []
        term = query.split(":", 1)[-1].strip('"').lower()
        hits = [dict(c) for c in self.customers if term in c["email"].lower()]
        return hits[:first]

    def recent_customers(self, first=250):
        self._record("recent_customers", first)
        return [dict(c) for c in reversed(self.customers)][:first]

    def list_companies(self, first=50, namespace="custom", key="companyEmail"):
        self._record("list_companies", first)
        companies = []
        for company in self.companies[:first]:
            selected = [
                m for m in company["metafields"] if m["namespace"] == namespace and m["key"] == key
            ]
            companies.append(dict(company, metafields=selected[:1]))
        return companies

    def get_company_locations(self, company_id):
        self._record("get_company_locations", company_id)
        return [dict(loc) for loc in self.locations.get(company_id, [])]

    def get_company_roles(self, company_id):
        self._record("get_company_roles", company_id)
        return self.roles.get(company_id, {"defaultRole": None, "roles": []})

    # -- writes -------------------------------------------------------

    def create_customer(self, customer_input):
        self._record("create_customer", customer_input)
        if self._by_email(customer_input["email"]):
            raise UserErrors("customerCreate", [
                {"field": ["email"], "message": "Email has already been taken"}
            ])
        customer = self.add_customer(
            customer_input["email"],
            customer_input.get("firstName", ""),
            customer_input.get("lastName", ""),
            customer_input.get("phone"),
            customer_input.get("tags"),
        )
        return dict(customer)

    def update_customer(self, customer_input):
        self._record("update_customer", customer_input)
        customer = self.customer_by_id(customer_input["id"])
        customer.update({k: v for k, v in customer_input.items() if k != "id"})
        return dict(customer)

    def create_company(self, company_input):
        self._record("create_company", company_input)
        contact = company_input.get("companyContact")
        if contact and self._by_email(contact["email"]):
            raise UserErrors("companyCreate", [
                {"field": ["input", "companyContact", "email"],
                 "message": "Email address has already been taken.", "code": "TAKEN"}
            ])
        company = self.add_company(company_input["company"]["name"])
        contact_customer_id = None
        if contact:
            customer = self.add_customer(contact["email"], contact.get("firstName"), contact.get("lastName"))
            contact_id = self._gid("CompanyContact")
            self.contacts[contact_id] = (company["id"], customer["id"])
            self.main_contacts[company["id"]] = contact_id
            company["mainContactId"] = contact_id
            contact_customer_id = customer["id"]
        return {
            "id": company["id"],
            "name": company["name"],
            "contactCustomerId": contact_customer_id if self.return_contact_customer else None,
        }

    def set_company_metafield(self, company_id, namespace, key, value):
        self._record("set_company_metafield", company_id, namespace, key, value)
        company = next(c for c in self.companies if c["id"] == company_id)
        company["metafields"].append({"namespace": namespace, "key": key, "value": value})
        return {"namespace": namespace, "key": key, "value": value}

    def rename_location(self, location_id, name):
        self._record("rename_location", location_id, name)
        for locations in self.locations.values():
            for loc in locations:
                if loc["id"] == location_id:
                    loc["name"] = name
        return {"id": location_id, "name": name}

    def assign_location_address(self, location_id, address, address_types=None):
        self._record("assign_location_address", location_id, address, address_types)
        self.addresses[location_id] = address
        return [{"id": self._gid("CompanyAddress")}]

    def set_location_tax_id(self, location_id, tax_id):
        self._record("set_location_tax_id", location_id, tax_id)
        self.tax_ids[location_id] = tax_id
        return {"id": location_id}

    def assign_customer_as_contact(self, company_id, customer_id):
        self._record("assign_customer_as_contact", company_id, customer_id)
        contact_id = self._gid("CompanyContact")
        self.contacts[contact_id] = (company_id, customer_id)
        return contact_id

    def assign_main_contact(self, company_id, contact_id):
        self._record("assign_main_contact", company_id, contact_id)
        self.main_contacts[company_id] = contact_id
        return {"id": company_id, "mainContact": {"id": contact_id}}

    def assign_contact_role(self, contact_id, role_id, location_id):
        self._record("assign_contact_role", contact_id, role_id, location_id)
        self.role_assignments.append((contact_id, role_id, location_id))
        return self._gid("CompanyContactRoleAssignment")
