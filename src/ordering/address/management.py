"""Address book commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.address.address import Address
from ordering.domain import ordering


@ordering.command(part_of="Address")
class SaveAddress:
    user_id = Identifier(required=True)
    address_id = Identifier()  # Absent for a new entry
    full_name = String(required=True, max_length=100)
    phone = String(required=True, max_length=15)
    address_line_1 = String(required=True, max_length=255)
    address_line_2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=10)
    country = String(max_length=100, default="India")
    is_default = Boolean(default=False)


@ordering.command(part_of="Address")
class DeleteAddress:
    user_id = Identifier(required=True)
    address_id = Identifier(required=True)


def _owned_address(repo, address_id, user_id) -> Address:
    address = repo.get(address_id)
    if not address.belongs_to(user_id):
        raise ObjectNotFoundError(f"Address {address_id} not found")
    return address


@ordering.command_handler(part_of=Address)
class AddressBookHandler:
    @handle(SaveAddress)
    def save_address(self, command):
        repo = current_domain.repository_for(Address)
        fields = {
            "full_name": command.full_name,
            "phone": command.phone,
            "address_line_1": command.address_line_1,
            "address_line_2": command.address_line_2,
            "city": command.city,
            "state": command.state,
            "postal_code": command.postal_code,
            "country": command.country,
        }

        if command.address_id:
            address = _owned_address(repo, command.address_id, command.user_id)
            address.revise(**fields)
        else:
            address = Address.create(command.user_id, **fields)

        # Only one default address per user
        if command.is_default:
            for other in repo.for_user(command.user_id):
                if other.is_default and str(other.id) != str(address.id):
                    other.is_default = False
                    repo.add(other)
        address.is_default = command.is_default
        repo.add(address)
        return str(address.id)

    @handle(DeleteAddress)
    def delete_address(self, command):
        repo = current_domain.repository_for(Address)
        address = _owned_address(repo, command.address_id, command.user_id)
        repo._dao.delete(address)
