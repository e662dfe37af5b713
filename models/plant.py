from enum import Enum

from tortoise import fields, models


class PlantLocation(str, Enum):
    INDOOR = "INDOOR"
    OUTDOOR = "OUTDOOR"


class Species(models.Model):
    id = fields.IntField(pk=True)
    common_name = fields.CharField(max_length=255)
    scientific_name = fields.CharField(max_length=255, null=True)
    description = fields.TextField(null=True)

    light_needs = fields.CharField(max_length=255, null=True)
    # free text such as "Weekly" or "Every 2-3 weeks"
    water_frequency = fields.CharField(max_length=255, null=True)
    humidity = fields.CharField(max_length=255, null=True)
    temperature = fields.CharField(max_length=255, null=True)
    toxicity = fields.CharField(max_length=255, null=True)
    # subset of PlantLocation values, e.g. ["INDOOR", "OUTDOOR"]
    suitable_for = fields.JSONField(null=True)
    image_url = fields.CharField(max_length=500, null=True)

    class Meta:
        table = "species"
        ordering = ["common_name"]

    def __str__(self):
        return self.common_name


class Plant(models.Model):
    id = fields.IntField(pk=True)
    # the original creator; unchanged when the plant is shared through a garden
    user = fields.ForeignKeyField("models.User", related_name="plants", on_delete=fields.CASCADE)

    name = fields.CharField(max_length=255)
    nickname = fields.CharField(max_length=255, null=True)
    species = fields.ForeignKeyField("models.Species", related_name="plants", null=True, on_delete=fields.SET_NULL)
    location = fields.CharEnumField(PlantLocation, max_length=10)
    area = fields.CharField(max_length=255, null=True)
    acquired_at = fields.DatetimeField(null=True)
    notes = fields.TextField(null=True)

    garden = fields.ForeignKeyField("models.Garden", related_name="plants", null=True, on_delete=fields.SET_NULL)
    deleted_at = fields.DatetimeField(null=True, index=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "plants"

    def __str__(self):
        return self.nickname or self.name


class HealthAssessment(models.Model):
    id = fields.IntField(pk=True)
    plant = fields.ForeignKeyField("models.Plant", related_name="assessments", on_delete=fields.CASCADE)

    health_status = fields.CharField(max_length=50)
    issues = fields.TextField(null=True)
    recommendations = fields.TextField(null=True)
    raw_response = fields.TextField(null=True)

    assessed_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "health_assessments"
