from tortoise import fields, models


class User(models.Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=255, null=True)
    # stored lowercase so lookups by email are case-insensitive
    email = fields.CharField(max_length=320, unique=True)
    image = fields.CharField(max_length=500, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"

    def __str__(self):
        return self.name or self.email

    async def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        await super().save(*args, **kwargs)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "image": self.image,
        }


class UserLocation(models.Model):
    id = fields.IntField(pk=True)
    user = fields.OneToOneField("models.User", related_name="location", on_delete=fields.CASCADE)

    latitude = fields.FloatField()
    longitude = fields.FloatField()
    city = fields.CharField(max_length=255, null=True)
    country = fields.CharField(max_length=255, null=True)
    timezone = fields.CharField(max_length=64, null=True)

    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "user_locations"
