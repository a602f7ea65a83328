"""Tests for manifest handling: structure, filtering, locales and the main jar."""

from unittest.mock import MagicMock

import pytest

from jnlp.errors import DescriptorParseError
from jnlp.handler import JNLPContentHandler
from jnlp.specification import JNLPSpecification
from launcher.descriptor import ApplicationDescriptor, ExtensionDescriptor
from launcher.gestalt import RuntimeEnvironment
from launcher.information import Locale
from launcher.reference import NativelibReference


SOURCE = "http://x/app/demo.jnlp"

INFO = """
  <information>
    <title>Demo</title>
    <vendor>Acme</vendor>
  </information>
"""


def manifest(resources, information=INFO, desc='<application-desc main-class="demo.Main"/>', attrs=""):
    return f'<?xml version="1.0"?>\n<jnlp spec="1.0+" codebase="http://x/app" {attrs}>{information}{resources}{desc}</jnlp>'


def parse(text, env, chunk=None):
    handler = JNLPContentHandler(MagicMock(), SOURCE, env)
    data = text.encode("utf-8")
    if chunk:
        for i in range(0, len(data), chunk):
            handler.feed(data[i:i + chunk])
    else:
        handler.feed(data)
    return handler.close()


class TestMainJar:
    """Test main jar selection."""

    def test_only_jar_becomes_main(self, env):
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>'), env)
        assert desc.resources.main_jar.url == "http://x/app/demo.jar"

    def test_explicit_main_wins_over_first(self, env):
        desc = parse(
            manifest('<resources><jar href="lib.jar"/><jar href="demo.jar" main="true"/></resources>'),
            env,
        )
        assert desc.resources.main_jar.url == "http://x/app/demo.jar"
        assert [r.url for r in desc.resources.eager_jars()] == ["http://x/app/lib.jar", "http://x/app/demo.jar"]

    def test_two_main_jars_fail(self, env):
        text = manifest('<resources><jar href="a.jar" main="true"/><jar href="b.jar" main="true"/></resources>')
        with pytest.raises(DescriptorParseError, match="more than one jar"):
            parse(text, env)

    def test_no_jar_fails(self, env):
        with pytest.raises(DescriptorParseError, match="no main jar"):
            parse(manifest("<resources/>"), env)

    def test_lazy_and_versioned_jar(self, env):
        desc = parse(
            manifest('<resources><jar href="demo.jar"/><jar href="x.jar" version="1.2 1.3" download="lazy"/></resources>'),
            env,
        )
        lazy = desc.resources.lazy_jars()
        assert [str(v) for v in lazy[0].versions] == ["1.2", "1.3"]


class TestResourceFiltering:
    """Test os, arch and locale conditions on resources blocks."""

    BASE = '<resources><jar href="demo.jar"/></resources>'

    def _urls(self, block, env):
        desc = parse(manifest(self.BASE + block), env)
        return [r.url for r in desc.resources.jars()]

    def test_arch_prefix_match(self, env):
        assert "http://x/app/x86.jar" in self._urls('<resources arch="x86"><jar href="x86.jar"/></resources>', env)

    def test_arch_mismatch(self, env):
        assert "http://x/app/sparc.jar" not in self._urls(
            '<resources arch="sparc"><jar href="sparc.jar"/></resources>', env
        )

    def test_any_listed_arch(self, env):
        assert "http://x/app/a.jar" in self._urls('<resources arch="ppc x86_64"><jar href="a.jar"/></resources>', env)

    def test_os_with_escaped_space(self):
        mac = RuntimeEnvironment("Mac OS X", "aarch64", Locale("en"))
        block = r'<resources os="Mac\ OS"><nativelib href="mac.jar"/></resources>'
        desc = parse(manifest(self.BASE + block), mac)
        assert [r.url for r in desc.resources.nativelibs()] == ["http://x/app/mac.jar"]
        assert isinstance(desc.resources.nativelibs()[0], NativelibReference)

    def test_all_conditions_must_hold(self, env):
        block = '<resources os="Linux" arch="sparc"><jar href="a.jar"/></resources>'
        assert "http://x/app/a.jar" not in self._urls(block, env)

    def test_locale_matches_coarser_runtime_locale(self, env):
        assert "http://x/app/en.jar" in self._urls('<resources locale="en"><jar href="en.jar"/></resources>', env)
        assert "http://x/app/us.jar" in self._urls('<resources locale="en_US"><jar href="us.jar"/></resources>', env)

    def test_locale_mismatch(self, env):
        assert "http://x/app/de.jar" not in self._urls('<resources locale="de"><jar href="de.jar"/></resources>', env)

    def test_filtered_properties_are_discarded(self, env):
        block = '<resources os="Windows"><property name="a" value="1"/></resources>'
        desc = parse(manifest(self.BASE + block), env)
        assert desc.resources.properties is None

    def test_properties(self, env):
        desc = parse(manifest('<resources><jar href="demo.jar"/><property name="a" value="1"/></resources>'), env)
        assert desc.resources.properties == {"a": "1"}


class TestInformationBlocks:
    """Test default and locale-specific information handling."""

    def test_missing_vendor_fails(self, env):
        info = "<information><title>Demo</title></information>"
        with pytest.raises(DescriptorParseError, match="No default information"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), env)

    def test_first_locale_becomes_default(self, env):
        info = (
            '<information locale="fr"><title>Démo</title><vendor>Acme FR</vendor></information>'
            '<information locale="de"><title>Vorführung</title><vendor>Acme DE</vendor></information>'
        )
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), env)
        assert desc.information.default_title == "Démo"
        assert desc.information.title == "Démo"

    def test_locale_specific_information(self):
        en_gb = RuntimeEnvironment("Linux", "x86_64", Locale("en", "GB"))
        info = INFO + '<information locale="en_GB en_AU"><title>Demo (UK)</title></information>'
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), en_gb)
        assert desc.information.title == "Demo (UK)"
        assert desc.information.vendor == "Acme"
        assert set(desc.information.locales()) == {Locale("en", "GB"), Locale("en", "AU")}

    def test_text_is_collapsed_and_trimmed(self, env):
        info = """<information>
            <title>  Demo
                 Application </title>
            <vendor>Acme</vendor>
            <description kind="short">  short   text </description>
            <homepage href="index.html"/>
            <icon href="icon.png" width="32" height="32"/>
            <offline-allowed/>
        </information>"""
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), env)
        information = desc.information
        assert information.title == "Demo Application"
        assert information.description("short") == "short text"
        assert information.homepage == "http://x/app/index.html"
        icon = information.icon_info()
        assert (icon.width, icon.height, icon.depth, icon.size) == (32, 32, -1, -1)
        assert information.allows_offline()

    @pytest.mark.parametrize("width", ["big", " 5 ", "1_0", "", "٥"])
    def test_bad_icon_number_fails(self, env, width):
        info = INFO.replace("</information>", f'<icon href="i.png" width="{width}"/></information>')
        with pytest.raises(DescriptorParseError, match="bad numeric value"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), env)

    def test_signed_icon_numbers(self, env):
        info = INFO.replace("</information>", '<icon href="i.png" width="+32" height="-1"/></information>')
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', information=info), env)
        icon = desc.information.icon_info()
        assert (icon.width, icon.height) == (32, -1)


class TestStructure:
    """Test nesting rules and descriptor kinds."""

    def test_misplaced_tag_fails(self, env):
        text = manifest('<resources><jar href="demo.jar"/></resources><jar href="x.jar"/>')
        with pytest.raises(DescriptorParseError, match="misplaced jar"):
            parse(text, env)

    def test_unknown_tags_are_ignored(self, env):
        text = manifest('<resources><jar href="demo.jar"/><shortcut online="true"><desktop/></shortcut></resources>')
        desc = parse(text, env)
        assert desc.resources.main_jar is not None

    def test_malformed_xml_fails(self, env):
        with pytest.raises(DescriptorParseError, match="malformed"):
            parse("<jnlp><information></jnlp>", env)

    def test_missing_descriptor_kind_fails(self, env):
        with pytest.raises(DescriptorParseError, match="no application"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=""), env)

    def test_application_arguments(self, env):
        desc_tag = '<application-desc main-class="demo.Main"><argument> -v </argument><argument>x</argument></application-desc>'
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=desc_tag), env)
        assert isinstance(desc, ApplicationDescriptor)
        assert desc.main_class == "demo.Main"
        assert desc.arguments == ["-v", "x"]

    def test_applet(self, env):
        desc_tag = (
            '<applet-desc name="Demo" main-class="demo.Applet" width="300" height="200" documentbase="docs/">'
            '<param name="color" value="blue"/></applet-desc>'
        )
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=desc_tag), env)
        assert desc.is_applet_descriptor()
        assert desc.get_param("color") == "blue"
        assert desc.document_base == "http://x/app/docs/"

    def test_applet_padded_size_fails(self, env):
        desc_tag = '<applet-desc name="Demo" main-class="demo.Applet" width=" 300" height="200"/>'
        with pytest.raises(DescriptorParseError, match="bad numeric value for width"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=desc_tag), env)

    def test_malformed_documentbase_fails(self, env):
        desc_tag = '<applet-desc name="Demo" main-class="demo.Applet" width="1" height="1" documentbase="http://[d/"/>'
        with pytest.raises(DescriptorParseError, match="bad URL"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=desc_tag), env)

    def test_applet_requires_name(self, env):
        desc_tag = '<applet-desc main-class="demo.Applet" width="1" height="1"/>'
        with pytest.raises(DescriptorParseError, match="requires name"):
            parse(manifest('<resources><jar href="demo.jar"/></resources>', desc=desc_tag), env)

    def test_component_extension(self, env):
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>', desc="<component-desc/>"), env)
        assert isinstance(desc, ExtensionDescriptor)
        assert not desc.installer

    def test_incremental_feed(self, env):
        text = manifest('<resources><jar href="demo.jar"/></resources>')
        desc = parse(text, env, chunk=7)
        assert desc.information.default_vendor == "Acme"


class TestSpecification:
    """Test the <jnlp> element attributes."""

    def test_codebase_href_and_spec(self, env):
        text = manifest('<resources><jar href="demo.jar"/></resources>', attrs='href="demo.jnlp" version="2.0"')
        desc = parse(text, env)
        spec = desc.context
        assert isinstance(spec, JNLPSpecification)
        assert spec.codebase == "http://x/app/"
        assert spec.reference.url == "http://x/app/demo.jnlp"
        assert desc.source is spec.reference
        assert [str(v) for v in spec.specification] == ["1.0+"]
        assert spec.jnlp_name == "demo.jnlp"

    def test_without_href_source_is_read_url(self, env):
        desc = parse(manifest('<resources><jar href="demo.jar"/></resources>'), env)
        assert desc.source.url == SOURCE
        assert desc.codebase == "http://x/app/"

    def test_relative_codebase_fails(self, env):
        text = '<jnlp codebase="app">' + INFO + '<resources><jar href="a.jar"/></resources><component-desc/></jnlp>'
        with pytest.raises(DescriptorParseError, match="bad codebase"):
            parse(text, env)

    def test_malformed_codebase_fails(self, env):
        text = '<jnlp codebase="http://[x/">' + INFO + '<resources><jar href="a.jar"/></resources><component-desc/></jnlp>'
        with pytest.raises(DescriptorParseError, match="bad codebase"):
            parse(text, env)

    def test_malformed_manifest_href_fails(self, env):
        text = manifest('<resources><jar href="demo.jar"/></resources>', attrs='href="http://[m/demo.jnlp"')
        with pytest.raises(DescriptorParseError, match="bad href"):
            parse(text, env)

    def test_malformed_jar_href_fails(self, env):
        with pytest.raises(DescriptorParseError, match="bad URL") as info:
            parse(manifest('<resources><jar href="http://[bad/x.jar"/></resources>'), env)
        assert info.value.tag == "jar"

    def test_relative_hrefs_use_source_without_codebase(self, env):
        text = "<jnlp>" + INFO + '<resources><jar href="lib/a.jar"/></resources><component-desc/></jnlp>'
        desc = parse(text, env)
        assert desc.resources.main_jar.url == "http://x/app/lib/a.jar"
