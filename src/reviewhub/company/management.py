"""Company registration, details updates and approval.

Admins and Operators pass the `company` module check outright; SubAdmins
need the matching capability in their permission tree. Operators may only
touch the companies they own.
"""

from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviewhub.access.evaluator import permission_evaluator
from reviewhub.access.identity import IdentityContext, require_role, resolve_identity
from reviewhub.access.modules import Capability, Module, module_candidates
from reviewhub.access.principal import Role
from reviewhub.company.company import Company, CompanyStatus
from reviewhub.domain import reviewhub
from reviewhub.errors import PermissionDenied
from reviewhub.utils.concurrency import save_if_unchanged, serialized

COMPANY_BYPASS_ROLES = frozenset({Role.ADMIN, Role.OPERATOR})


def authorize_company(actor: IdentityContext, capability: Capability, company: Company | None = None):
    permission_evaluator().authorize(actor, module_candidates(Module.COMPANY), [capability], COMPANY_BYPASS_ROLES)
    if company is not None and actor.role == Role.OPERATOR and not actor.owns(company.operator_id):
        raise PermissionDenied("Operators can only manage their own companies", company_id=str(company.id))


@reviewhub.command(part_of="Company")
class RegisterCompany:
    actor_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    description = Text()
    category = String(max_length=100)
    website = String(max_length=500)
    operator_id = Identifier()  # Admins may assign an owning Operator


@reviewhub.command(part_of="Company")
class UpdateCompanyDetails:
    actor_id = Identifier(required=True)
    company_id = Identifier(required=True)
    name = String(max_length=200)
    description = Text()
    category = String(max_length=100)
    website = String(max_length=500)


@reviewhub.command(part_of="Company")
class ApproveCompany:
    actor_id = Identifier(required=True)
    company_id = Identifier(required=True)


@reviewhub.command(part_of="Company")
class RejectCompany:
    actor_id = Identifier(required=True)
    company_id = Identifier(required=True)
    reason = Text()


def _company_key(command):
    return ("company", str(command.company_id))


@reviewhub.command_handler(part_of=Company)
class CompanyManagementHandler:
    @handle(RegisterCompany)
    def register_company(self, command):
        actor = resolve_identity(command.actor_id)
        authorize_company(actor, Capability.CREATE)

        if actor.is_admin:
            status, operator_id = CompanyStatus.APPROVED, command.operator_id
        elif actor.role == Role.OPERATOR:
            status, operator_id = CompanyStatus.PENDING, actor.principal_id
        else:
            status, operator_id = CompanyStatus.PENDING, None

        company = Company.register(
            name=command.name,
            registered_by=actor.principal_id,
            status=status,
            operator_id=operator_id,
            description=command.description,
            category=command.category,
            website=command.website,
        )
        current_domain.repository_for(Company).add(company)
        return str(company.id)

    @serialized(_company_key)
    @handle(UpdateCompanyDetails)
    def update_company_details(self, command):
        actor = resolve_identity(command.actor_id)
        repo = current_domain.repository_for(Company)
        company = repo.get(command.company_id)
        authorize_company(actor, Capability.UPDATE, company)

        changes = {
            field: getattr(command, field)
            for field in ("name", "description", "category", "website")
            if getattr(command, field) is not None
        }
        expected = company.revision
        company.update_details(**changes)
        save_if_unchanged(repo, company, expected)

    @serialized(_company_key)
    @handle(ApproveCompany)
    def approve_company(self, command):
        actor = resolve_identity(command.actor_id)
        require_role(actor, Role.ADMIN)

        repo = current_domain.repository_for(Company)
        company = repo.get(command.company_id)
        expected = company.revision
        company.approve(approved_by=actor.principal_id)
        save_if_unchanged(repo, company, expected)

    @serialized(_company_key)
    @handle(RejectCompany)
    def reject_company(self, command):
        actor = resolve_identity(command.actor_id)
        require_role(actor, Role.ADMIN)

        repo = current_domain.repository_for(Company)
        company = repo.get(command.company_id)
        expected = company.revision
        company.reject(rejected_by=actor.principal_id, reason=command.reason)
        save_if_unchanged(repo, company, expected)
