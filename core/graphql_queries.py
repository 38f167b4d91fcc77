"""
GraphQL Query Definitions - Every Admin API document used by the registration workflow.

Reads:
  CUSTOMER_BY_EMAIL_QUERY          customers(query:) search, used by the identity lookup
                                   and the first two tiers of the duplicate-email fallback
  RECENT_CUSTOMERS_QUERY           most recently updated customers, the last fallback tier
  COMPANIES_WITH_METAFIELDS_QUERY  first page of companies, each with the one metafield the
                                   company lookup matches on (custom.companyEmail)
  COMPANY_LOCATIONS_QUERY          locations of one company; the first one is the target
  COMPANY_ROLES_QUERY              default role and contact roles of one company

Writes (each payload selects userErrors { field message code }):
  CUSTOMER_CREATE_MUTATION, CUSTOMER_UPDATE_MUTATION
  COMPANY_CREATE_MUTATION, METAFIELDS_SET_MUTATION
  COMPANY_LOCATION_UPDATE_MUTATION, COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION
  COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION
  COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION, COMPANY_ASSIGN_MAIN_CONTACT_MUTATION
  COMPANY_CONTACT_ASSIGN_ROLE_MUTATION

Note on tax settings:
  companyLocationTaxSettingsUpdate is missing from some API versions and store
  plans. The API then answers with a top-level error like
  "Field 'companyLocationTaxSettingsUpdate' doesn't exist on type 'Mutation'",
  which the orchestrator treats as a soft failure.
"""

_CUSTOMER_FIELDS = """
    id
    email
    firstName
    lastName
    phone
    tags
"""

CUSTOMER_BY_EMAIL_QUERY = """
query GetCustomerByEmail($query: String!, $first: Int!) {
  customers(first: $first, query: $query) {
    edges {
      node {%s}
    }
  }
}
""" % _CUSTOMER_FIELDS

RECENT_CUSTOMERS_QUERY = """
query GetRecentCustomers($first: Int!) {
  customers(first: $first, sortKey: UPDATED_AT, reverse: true) {
    edges {
      node {%s}
    }
  }
}
""" % _CUSTOMER_FIELDS

COMPANIES_WITH_METAFIELDS_QUERY = """
query GetCompaniesWithMetafield($first: Int!, $namespace: String!, $key: String!) {
  companies(first: $first) {
    edges {
      node {
        id
        name
        mainContact {
          id
        }
        metafield(namespace: $namespace, key: $key) {
          namespace
          key
          value
        }
      }
    }
  }
}
"""

COMPANY_LOCATIONS_QUERY = """
query GetCompanyLocations($companyId: ID!) {
  company(id: $companyId) {
    id
    locations(first: 1) {
      edges {
        node {
          id
          name
        }
      }
    }
  }
}
"""

COMPANY_ROLES_QUERY = """
query GetCompanyRoles($companyId: ID!) {
  company(id: $companyId) {
    id
    defaultRole {
      id
      name
    }
    contactRoles(first: 10) {
      edges {
        node {
          id
          name
        }
      }
    }
  }
}
"""

CUSTOMER_CREATE_MUTATION = """
mutation CreateCustomer($input: CustomerInput!) {
  customerCreate(input: $input) {
    customer {%s}
    userErrors {
      field
      message
      code
    }
  }
}
""" % _CUSTOMER_FIELDS

CUSTOMER_UPDATE_MUTATION = """
mutation UpdateCustomer($input: CustomerInput!) {
  customerUpdate(input: $input) {
    customer {%s}
    userErrors {
      field
      message
      code
    }
  }
}
""" % _CUSTOMER_FIELDS

COMPANY_CREATE_MUTATION = """
mutation CreateCompany($input: CompanyCreateInput!) {
  companyCreate(input: $input) {
    company {
      id
      name
      mainContact {
        id
        customer {
          id
          email
        }
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

METAFIELDS_SET_MUTATION = """
mutation SetMetafields($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields {
      id
      namespace
      key
      value
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_LOCATION_UPDATE_MUTATION = """
mutation UpdateCompanyLocation($companyLocationId: ID!, $input: CompanyLocationUpdateInput!) {
  companyLocationUpdate(companyLocationId: $companyLocationId, input: $input) {
    companyLocation {
      id
      name
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION = """
mutation AssignLocationAddress($locationId: ID!, $address: CompanyAddressInput!, $addressTypes: [CompanyAddressType!]!) {
  companyLocationAssignAddress(locationId: $locationId, address: $address, addressTypes: $addressTypes) {
    addresses {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION = """
mutation UpdateLocationTaxSettings($companyLocationId: ID!, $taxRegistrationId: String) {
  companyLocationTaxSettingsUpdate(companyLocationId: $companyLocationId, taxRegistrationId: $taxRegistrationId) {
    companyLocation {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION = """
mutation AssignCustomerAsContact($companyId: ID!, $customerId: ID!) {
  companyAssignCustomerAsContact(companyId: $companyId, customerId: $customerId) {
    companyContact {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_ASSIGN_MAIN_CONTACT_MUTATION = """
mutation AssignMainContact($companyId: ID!, $companyContactId: ID!) {
  companyAssignMainContact(companyId: $companyId, companyContactId: $companyContactId) {
    company {
      id
      mainContact {
        id
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

COMPANY_CONTACT_ASSIGN_ROLE_MUTATION = """
mutation AssignContactRole($companyContactId: ID!, $companyContactRoleId: ID!, $companyLocationId: ID!) {
  companyContactAssignRole(
    companyContactId: $companyContactId
    companyContactRoleId: $companyContactRoleId
    companyLocationId: $companyLocationId
  ) {
    companyContactRoleAssignment {
      id
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""
