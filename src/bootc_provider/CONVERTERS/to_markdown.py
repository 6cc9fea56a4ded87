# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Generates Markdown reference documentation from provider and resource schemas.
"""
import os
from typing import List, Tuple

from jinja2 import Template

from ..FRAMEWORK.provider import Provider, ProviderMetadataResponse, ProviderSchemaResponse
from ..FRAMEWORK.resource import MetadataRequest, MetadataResponse, SchemaResponse

INDEX_TEMPLATE = """# {{ name }} Provider

{{ description }}

Version: `{{ version }}`

## Resources
{% for resource in resources %}
- [{{ resource }}](resources/{{ resource }}.md)
{%- endfor %}
"""

RESOURCE_TEMPLATE = """# {{ name }} (Resource)

{{ description }}

{% for title, group in groups if group %}
## {{ title }}

{% for attr_name, attr in group %}
- `{{ attr_name }}` ({{ attr.type_name }}) {{ attr.description }}
{%- if attr.default is not none %} Defaults to `{{ attr.default | tojson }}`.{% endif %}
{%- for v in attr.validators %} {{ v.description() | capitalize }}.{% endfor %}
{%- for m in attr.plan_modifiers %} {{ m.description() }}{% endfor %}
{% endfor %}
{% endfor %}
"""


class MarkdownDocsConverter:
    """
    Renders one index page plus one page per resource.
    """

    def __init__(self, provider: Provider):
        """
        Initializes the converter.

        :param provider: Provider whose schemas are documented.
        """
        self.provider = provider
        self.index_template = Template(INDEX_TEMPLATE)
        self.resource_template = Template(RESOURCE_TEMPLATE)

    def render_resource(self, resource) -> Tuple[str, str]:
        """
        Renders the page for one resource.

        :return: The resource type name and the Markdown text.
        """
        meta = ProviderMetadataResponse()
        self.provider.metadata(meta)
        md = MetadataResponse()
        resource.metadata(MetadataRequest(provider_type_name=meta.type_name), md)
        sch = SchemaResponse()
        resource.schema(sch)

        attrs = sorted(sch.schema.attributes.items())
        groups = [
            ("Required", [(n, a) for n, a in attrs if a.required]),
            ("Optional", [(n, a) for n, a in attrs if a.optional]),
            ("Read-Only", [(n, a) for n, a in attrs if a.computed and not (a.optional or a.required)]),
        ]
        content = self.resource_template.render(
            name=md.type_name,
            description=sch.schema.description,
            groups=groups,
        )
        return md.type_name, content

    def convert(self, output_dir: str = "docs") -> List[str]:
        """
        Writes the documentation pages.

        :param output_dir: Directory receiving index.md and resources/.
        :return: Paths of the written files.
        """
        meta = ProviderMetadataResponse()
        self.provider.metadata(meta)
        schema_resp = ProviderSchemaResponse()
        self.provider.schema(schema_resp)

        resources_dir = os.path.join(output_dir, "resources")
        os.makedirs(resources_dir, exist_ok=True)

        written = []
        names = []
        for factory in self.provider.resources():
            name, content = self.render_resource(factory())
            path = os.path.join(resources_dir, f"{name}.md")
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
            names.append(name)
            written.append(path)

        index_path = os.path.join(output_dir, "index.md")
        with open(index_path, "w", encoding="utf-8") as f:
            f.write(self.index_template.render(
                name=meta.type_name,
                description=schema_resp.schema.description,
                version=meta.version,
                resources=names,
            ))
        written.insert(0, index_path)
        return written
