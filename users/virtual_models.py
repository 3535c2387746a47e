import django_virtual_models as v

from users.models import User


class UserVirtualModel(v.VirtualModel):
    class Meta(v.VirtualModel.Meta):
        model = User
