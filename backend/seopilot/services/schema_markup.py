"""
Schema.org JSON-LD builders.

Each builder returns a SchemaMarkup; handlers decide how it is embedded.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from seopilot.services.frameworks.base import to_json_ld
from seopilot.services.types import BlogPost, SchemaMarkup


@dataclass
class OrganizationData:
    name: str
    url: str
    logo: str | None = None
    description: str | None = None
    same_as: list[str] = field(default_factory=list)
    contact_type: str | None = None
    telephone: str | None = None
    email: str | None = None


@dataclass
class WebSiteData:
    name: str
    url: str
    description: str | None = None
    search_url: str | None = None


@dataclass
class ProductData:
    name: str
    description: str
    image: str | None = None
    price: float | None = None
    currency: str = "USD"
    availability: str = "InStock"  # InStock, OutOfStock, PreOrder
    brand: str | None = None
    sku: str | None = None
    rating_value: float | None = None
    rating_count: int | None = None


@dataclass
class PostalAddress:
    street: str
    city: str
    state: str
    zip: str
    country: str


def format_breadcrumb_name(segment: str) -> str:
    words = segment.replace("-", " ").replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


class SchemaGenerator:
    def __init__(self, domain: str):
        self.domain = domain.rstrip("/")

    def organization(self, data: OrganizationData) -> SchemaMarkup:
        schema: dict[str, Any] = {"name": data.name, "url": data.url}
        if data.logo:
            schema["logo"] = {"@type": "ImageObject", "url": data.logo}
        if data.description:
            schema["description"] = data.description
        if data.same_as:
            schema["sameAs"] = list(data.same_as)
        if data.contact_type:
            contact: dict[str, Any] = {"@type": data.contact_type}
            if data.telephone:
                contact["telephone"] = data.telephone
            if data.email:
                contact["email"] = data.email
            schema["contactPoint"] = contact
        return SchemaMarkup(type="Organization", data=schema)

    def website(self, data: WebSiteData) -> SchemaMarkup:
        schema: dict[str, Any] = {"name": data.name, "url": data.url}
        if data.description:
            schema["description"] = data.description
        if data.search_url:
            # Sitelinks search box
            schema["potentialAction"] = {
                "@type": "SearchAction",
                "target": {"@type": "EntryPoint", "urlTemplate": data.search_url},
                "query-input": "required name=search_term_string",
            }
        return SchemaMarkup(type="WebSite", data=schema)

    def blog_posting(self, post: BlogPost) -> SchemaMarkup:
        published = post.published_at.isoformat()
        schema: dict[str, Any] = {
            "headline": post.title,
            "description": post.meta_description,
            "datePublished": published,
            "dateModified": published,
            "author": {"@type": "Person", "name": post.author},
            "publisher": {"@type": "Organization", "name": post.author, "url": self.domain},
            "mainEntityOfPage": {"@type": "WebPage", "@id": f"{self.domain}/blog/{post.slug}"},
        }
        if post.featured_image:
            schema["image"] = {
                "@type": "ImageObject",
                "url": f"{self.domain}{post.featured_image.filename}",
                "width": post.featured_image.width,
                "height": post.featured_image.height,
            }
        if post.target_keyword:
            schema["keywords"] = ", ".join(post.keywords)
        schema["wordCount"] = len(post.content.split())
        return SchemaMarkup(type="BlogPosting", data=schema)

    def article(
        self,
        title: str,
        description: str,
        author: str,
        published_at: datetime,
        modified_at: datetime | None = None,
        image: str | None = None,
    ) -> SchemaMarkup:
        schema: dict[str, Any] = {
            "headline": title,
            "description": description,
            "datePublished": published_at.isoformat(),
            "dateModified": (modified_at or published_at).isoformat(),
            "author": {"@type": "Person", "name": author},
        }
        if image:
            schema["image"] = image
        return SchemaMarkup(type="Article", data=schema)

    def breadcrumb(self, path: str) -> SchemaMarkup:
        items = [("Home", self.domain)]
        current = ""
        for segment in [s for s in path.split("/") if s]:
            current += f"/{segment}"
            items.append((format_breadcrumb_name(segment), f"{self.domain}{current}"))
        return self.breadcrumb_from_items(items)

    def breadcrumb_from_items(self, items: list[tuple[str, str]]) -> SchemaMarkup:
        elements = [
            {"@type": "ListItem", "position": i, "name": name, "item": url}
            for i, (name, url) in enumerate(items, start=1)
        ]
        return SchemaMarkup(type="BreadcrumbList", data={"itemListElement": elements})

    def product(self, product: ProductData) -> SchemaMarkup:
        schema: dict[str, Any] = {"name": product.name, "description": product.description}
        if product.image:
            schema["image"] = product.image
        if product.brand:
            schema["brand"] = {"@type": "Brand", "name": product.brand}
        if product.sku:
            schema["sku"] = product.sku
        if product.price is not None:
            schema["offers"] = {
                "@type": "Offer",
                "price": product.price,
                "priceCurrency": product.currency,
                "availability": f"https://schema.org/{product.availability}",
            }
        if product.rating_value is not None:
            schema["aggregateRating"] = {
                "@type": "AggregateRating",
                "ratingValue": product.rating_value,
                "reviewCount": product.rating_count or 0,
            }
        return SchemaMarkup(type="Product", data=schema)

    def faq(self, questions: list[tuple[str, str]]) -> SchemaMarkup:
        main_entity = [
            {
                "@type": "Question",
                "name": question,
                "acceptedAnswer": {"@type": "Answer", "text": answer},
            }
            for question, answer in questions
        ]
        return SchemaMarkup(type="FAQPage", data={"mainEntity": main_entity})

    def local_business(
        self,
        name: str,
        address: PostalAddress,
        phone: str | None = None,
        opening_hours: list[str] | None = None,
    ) -> SchemaMarkup:
        schema: dict[str, Any] = {
            "name": name,
            "address": {
                "@type": "PostalAddress",
                "streetAddress": address.street,
                "addressLocality": address.city,
                "addressRegion": address.state,
                "postalCode": address.zip,
                "addressCountry": address.country,
            },
        }
        if phone:
            schema["telephone"] = phone
        if opening_hours:
            schema["openingHours"] = list(opening_hours)
        return SchemaMarkup(type="LocalBusiness", data=schema)

    def how_to(self, name: str, description: str, steps: list[dict]) -> SchemaMarkup:
        """`steps` items are `{name, text, image?}`."""
        step_data = []
        for position, step in enumerate(steps, start=1):
            entry = {"@type": "HowToStep", "position": position, "name": step["name"], "text": step["text"]}
            if step.get("image"):
                entry["image"] = step["image"]
            step_data.append(entry)
        return SchemaMarkup(type="HowTo", data={"name": name, "description": description, "step": step_data})

    @staticmethod
    def to_json_ld(schema: SchemaMarkup) -> str:
        return json.dumps(to_json_ld(schema), indent=2, ensure_ascii=False)

    def to_script_tag(self, schema: SchemaMarkup) -> str:
        return f'<script type="application/ld+json">\n{self.to_json_ld(schema)}\n</script>'

    @staticmethod
    def combine_schemas(schemas: list[SchemaMarkup]) -> str:
        graph = [{"@type": s.type, **s.data} for s in schemas]
        return json.dumps({"@context": "https://schema.org", "@graph": graph}, indent=2, ensure_ascii=False)
