from tortoise import BaseDBAsyncClient

RUN_IN_TRANSACTION = True


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "users" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "name" VARCHAR(255),
    "email" VARCHAR(320) NOT NULL UNIQUE,
    "image" VARCHAR(500),
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS "user_locations" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "latitude" DOUBLE PRECISION NOT NULL,
    "longitude" DOUBLE PRECISION NOT NULL,
    "city" VARCHAR(255),
    "country" VARCHAR(255),
    "timezone" VARCHAR(64),
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "user_id" INT NOT NULL UNIQUE REFERENCES "users" ("id") ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS "gardens" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "name" VARCHAR(40) NOT NULL,
    "description" VARCHAR(500),
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "owner_id" INT NOT NULL REFERENCES "users" ("id") ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS "garden_members" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "role" VARCHAR(10) NOT NULL DEFAULT 'VIEWER',
    "invited_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "garden_id" INT NOT NULL REFERENCES "gardens" ("id") ON DELETE CASCADE,
    "user_id" INT NOT NULL REFERENCES "users" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_garden_memb_garden__6f2d1c" UNIQUE ("garden_id", "user_id")
);
COMMENT ON COLUMN "garden_members"."role" IS 'VIEWER: VIEWER\nADMIN: ADMIN\nOWNER: OWNER';
CREATE TABLE IF NOT EXISTS "species" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "common_name" VARCHAR(255) NOT NULL,
    "scientific_name" VARCHAR(255),
    "description" TEXT,
    "light_needs" VARCHAR(255),
    "water_frequency" VARCHAR(255),
    "humidity" VARCHAR(255),
    "temperature" VARCHAR(255),
    "toxicity" VARCHAR(255),
    "suitable_for" JSONB,
    "image_url" VARCHAR(500)
);
CREATE TABLE IF NOT EXISTS "plants" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "name" VARCHAR(255) NOT NULL,
    "nickname" VARCHAR(255),
    "location" VARCHAR(10) NOT NULL,
    "area" VARCHAR(255),
    "acquired_at" TIMESTAMPTZ,
    "notes" TEXT,
    "deleted_at" TIMESTAMPTZ,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "garden_id" INT REFERENCES "gardens" ("id") ON DELETE SET NULL,
    "species_id" INT REFERENCES "species" ("id") ON DELETE SET NULL,
    "user_id" INT NOT NULL REFERENCES "users" ("id") ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS "idx_plants_deleted_3b1f0e" ON "plants" ("deleted_at");
COMMENT ON COLUMN "plants"."location" IS 'INDOOR: INDOOR\nOUTDOOR: OUTDOOR';
CREATE TABLE IF NOT EXISTS "health_assessments" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "health_status" VARCHAR(50) NOT NULL,
    "issues" TEXT,
    "recommendations" TEXT,
    "raw_response" TEXT,
    "assessed_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "plant_id" INT NOT NULL REFERENCES "plants" ("id") ON DELETE CASCADE
);
CREATE TABLE IF NOT EXISTS "care_schedules" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "care_type" VARCHAR(20) NOT NULL,
    "interval_days" INT NOT NULL,
    "next_due_date" TIMESTAMPTZ NOT NULL,
    "last_cared_at" TIMESTAMPTZ,
    "enabled" BOOL NOT NULL DEFAULT True,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "plant_id" INT NOT NULL REFERENCES "plants" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_care_schedu_plant_i_9a4e27" UNIQUE ("plant_id", "care_type")
);
COMMENT ON COLUMN "care_schedules"."care_type" IS 'WATERING: WATERING\nFERTILIZING: FERTILIZING\nREPOTTING: REPOTTING\nPRUNING: PRUNING\nPEST_TREATMENT: PEST_TREATMENT\nOTHER: OTHER';
CREATE TABLE IF NOT EXISTS "care_logs" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "type" VARCHAR(20) NOT NULL,
    "amount" VARCHAR(255),
    "notes" TEXT,
    "logged_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "plant_id" INT NOT NULL REFERENCES "plants" ("id") ON DELETE CASCADE
);
COMMENT ON COLUMN "care_logs"."type" IS 'WATERING: WATERING\nFERTILIZING: FERTILIZING\nREPOTTING: REPOTTING\nPRUNING: PRUNING\nPEST_TREATMENT: PEST_TREATMENT\nOTHER: OTHER';
CREATE TABLE IF NOT EXISTS "usage_logs" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "tool_type" VARCHAR(20) NOT NULL,
    "created_at" TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "user_id" INT NOT NULL REFERENCES "users" ("id") ON DELETE CASCADE
);
COMMENT ON COLUMN "usage_logs"."tool_type" IS 'PLANT_IDENTIFY: plant_identify\nHEALTH_ASSESSMENT: health_assessment';
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" SERIAL NOT NULL PRIMARY KEY,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSONB NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        DROP TABLE IF EXISTS "usage_logs";
        DROP TABLE IF EXISTS "care_logs";
        DROP TABLE IF EXISTS "care_schedules";
        DROP TABLE IF EXISTS "health_assessments";
        DROP TABLE IF EXISTS "plants";
        DROP TABLE IF EXISTS "species";
        DROP TABLE IF EXISTS "garden_members";
        DROP TABLE IF EXISTS "gardens";
        DROP TABLE IF EXISTS "user_locations";
        DROP TABLE IF EXISTS "users";"""
