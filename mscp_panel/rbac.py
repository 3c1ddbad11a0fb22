from .db import fetch_one


class RBAC:
    """Role-Based Access Control for the panel (admin > reseller > user)."""

    @staticmethod
    def is_admin(user):
        """Check if user is an administrator."""
        return user.get('role') == 'admin'

    @staticmethod
    def is_reseller(user):
        return user.get('role') == 'reseller'

    @staticmethod
    def can_manage_customer(user, customer_id):
        """Admins manage every customer, resellers only the ones they created."""
        if RBAC.is_admin(user):
            return True

        if not RBAC.is_reseller(user):
            return False

        customer = fetch_one(
            "SELECT created_by FROM admin WHERE admin_id=%s AND admin_type='user'",
            (customer_id,)
        )

        return bool(customer) and customer['created_by'] == user['user_id']
