"""Pytest configuration and shared fixtures.

This module contains OMP response samples of a small source manager and
fixtures for the in-memory managers used across all test modules.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from omp_fakes import FakeManager, ScriptedService

# Clock used for note and override expiry computations
FIXED_NOW = datetime(2015, 4, 20, 23, 0, tzinfo=UTC)

NVT_OID = "1.3.6.1.4.1.25623.1.0.10330"


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at 2015-04-20 23:00 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def credentials_response() -> str:
    """Sample get_lsc_credentials response with two credentials."""
    return """<get_lsc_credentials_response status="200" status_text="OK">
<lsc_credential id="c-ssh">
  <owner><name>admin</name></owner>
  <name>ssh-key</name>
  <login>scan</login>
  <targets><target id="t-1"><name>Web servers</name></target></targets>
</lsc_credential>
<lsc_credential id="c-smb">
  <owner><name>admin</name></owner>
  <name>smb-admin</name>
  <targets/>
</lsc_credential>
</get_lsc_credentials_response>"""


@pytest.fixture
def filters_response() -> str:
    """Sample get_filters response with one filter and the listing footer."""
    return """<get_filters_response status="200" status_text="OK">
<filter id="f-1">
  <owner><name>admin</name></owner>
  <name>High only</name>
  <comment>severity above 7</comment>
  <term>severity&gt;7</term>
  <type>result</type>
  <alerts><alert id="a-1"><name>Mail</name></alert></alerts>
</filter>
<filters start="1" max="-1"><term>first=1 rows=-1</term></filters>
<filter_count>1<filtered>1</filtered></filter_count>
</get_filters_response>"""


@pytest.fixture
def report_formats_response() -> str:
    """Sample get_report_formats listing."""
    return """<get_report_formats_response status="200" status_text="OK">
<report_format id="rf-1">
  <owner><name>admin</name></owner>
  <name>Custom CSV</name>
  <param><name>Columns</name><value>host,port</value></param>
  <alerts/>
</report_format>
</get_report_formats_response>"""


@pytest.fixture
def report_format_detail() -> str:
    """Sample detail response of report format rf-1."""
    return """<get_report_formats_response status="200" status_text="OK">
<report_format id="rf-1"><name>Custom CSV</name><extension>csv</extension></report_format>
</get_report_formats_response>"""


@pytest.fixture
def configs_response() -> str:
    """Sample get_configs listing."""
    return """<get_configs_response status="200" status_text="OK">
<config id="sc-1">
  <owner><name>admin</name></owner>
  <name>Fast</name>
  <families><family><name>Web</name></family></families>
  <tasks><task id="task-1"><name>Weekly web</name></task></tasks>
</config>
</get_configs_response>"""


@pytest.fixture
def config_detail() -> str:
    """Sample detail response of scan config sc-1."""
    return """<get_configs_response status="200" status_text="OK">
<config id="sc-1"><name>Fast</name><comment>quick</comment></config>
</get_configs_response>"""


@pytest.fixture
def slaves_response() -> str:
    """Sample get_slaves listing."""
    return """<get_slaves_response status="200" status_text="OK">
<slave id="s-1">
  <owner><name>admin</name></owner>
  <name>DMZ</name>
  <comment/>
  <host>10.0.0.2</host>
  <port>9390</port>
  <login>admin</login>
  <tasks/>
</slave>
</get_slaves_response>"""


@pytest.fixture
def schedules_response() -> str:
    """Sample get_schedules listing with a daily schedule."""
    return """<get_schedules_response status="200" status_text="OK">
<schedule id="sch-1">
  <owner><name>admin</name></owner>
  <name>Nightly</name>
  <comment>at night</comment>
  <first_time>2015-04-20T23:30:00Z</first_time>
  <period>86400</period>
  <simple_period>1<unit>day</unit></simple_period>
  <duration>0</duration>
  <simple_duration>0<unit>hour</unit></simple_duration>
  <timezone>UTC</timezone>
  <tasks/>
</schedule>
</get_schedules_response>"""


@pytest.fixture
def targets_response() -> str:
    """Sample get_targets listing with an SSH credential."""
    return """<get_targets_response status="200" status_text="OK">
<target id="t-1">
  <owner><name>admin</name></owner>
  <name>Web servers</name>
  <comment/>
  <hosts>10.0.0.1,10.0.0.3</hosts>
  <alive_tests>ICMP Ping</alive_tests>
  <ssh_lsc_credential id="c-ssh"><name>ssh-key</name><port>22</port></ssh_lsc_credential>
  <smb_lsc_credential id=""><name></name></smb_lsc_credential>
  <esxi_lsc_credential id=""><name></name></esxi_lsc_credential>
  <port_list id="pl-default"><name>All TCP</name></port_list>
  <tasks><task id="task-1"><name>Weekly web</name></task></tasks>
</target>
</get_targets_response>"""


@pytest.fixture
def alerts_response() -> str:
    """Sample get_alerts listing attaching report format rf-1."""
    return """<get_alerts_response status="200" status_text="OK">
<alert id="a-1">
  <owner><name>admin</name></owner>
  <name>Mail</name>
  <comment/>
  <condition>Always</condition>
  <event>Task run status changed<data>Done<name>status</name></data></event>
  <method>Email<data>admin@example.com<name>to_address</name></data><data>rf-1<name>notice_attach_format</name></data></method>
  <filter id="f-1"><name>High only</name></filter>
  <tasks/>
</alert>
</get_alerts_response>"""


@pytest.fixture
def tasks_response() -> str:
    """Sample get_tasks listing with preferences and a last report."""
    return """<get_tasks_response status="200" status_text="OK">
<task id="task-1">
  <owner><name>admin</name></owner>
  <name>Weekly web</name>
  <comment/>
  <alterable>0</alterable>
  <config id="sc-1"><name>Fast</name></config>
  <target id="t-1"><name>Web servers</name></target>
  <slave id=""><name></name></slave>
  <schedule id="sch-1"><name>Nightly</name></schedule>
  <scanner id="scn-ov"><name>OpenVAS Default</name></scanner>
  <alert id="a-1"><name>Mail</name></alert>
  <status>Done</status>
  <last_report><report id="r-1"><timestamp>2015-04-19T23:30:00Z</timestamp></report></last_report>
  <preferences>
    <preference><name>Auto delete</name><scanner_name>auto_delete_data</scanner_name><value>0</value></preference>
    <preference><name>Maximum hosts</name><scanner_name>max_hosts</scanner_name><value>20</value></preference>
  </preferences>
</task>
</get_tasks_response>"""


@pytest.fixture
def notes_response() -> str:
    """Sample get_notes listing with a multi-line text."""
    return f"""<get_notes_response status="200" status_text="OK">
<note id="n-1">
  <owner><name>admin</name></owner>
  <nvt oid="{NVT_OID}"><name>Services</name></nvt>
  <text>False positive
checked by ops</text>
  <active>1</active>
  <end_time></end_time>
  <hosts>10.0.0.1</hosts>
  <port>80/tcp</port>
  <severity>5.0</severity>
  <task id="task-1"><name>Weekly web</name></task>
  <result id=""/>
</note>
</get_notes_response>"""


@pytest.fixture
def overrides_response() -> str:
    """Sample get_overrides listing expiring one hour after FIXED_NOW."""
    return f"""<get_overrides_response status="200" status_text="OK">
<override id="o-1">
  <owner><name>admin</name></owner>
  <nvt oid="{NVT_OID}"/>
  <text>Accepted risk</text>
  <active>1</active>
  <end_time>2015-04-21T00:00:00Z</end_time>
  <hosts/>
  <port/>
  <severity/>
  <new_severity>0.0</new_severity>
  <task id=""/>
</override>
</get_overrides_response>"""


@pytest.fixture
def source_responses(
    credentials_response: str,
    filters_response: str,
    report_formats_response: str,
    report_format_detail: str,
    configs_response: str,
    config_detail: str,
    slaves_response: str,
    schedules_response: str,
    targets_response: str,
    alerts_response: str,
    tasks_response: str,
    notes_response: str,
    overrides_response: str,
) -> dict[str, str]:
    """Every request an export of the sample source manager sends."""
    return {
        "<get_lsc_credentials/>": credentials_response,
        "<get_filters/>": filters_response,
        "<get_report_formats/>": report_formats_response,
        "<get_report_formats details='1' report_format_id='rf-1'/>": report_format_detail,
        "<get_configs/>": configs_response,
        "<get_configs details='1' config_id='sc-1'/>": config_detail,
        "<get_slaves/>": slaves_response,
        "<get_schedules/>": schedules_response,
        "<get_targets/>": targets_response,
        "<get_alerts/>": alerts_response,
        "<get_tasks/>": tasks_response,
        '<get_notes details="1"/>': notes_response,
        '<get_overrides details="1"/>': overrides_response,
    }


@pytest.fixture
def source_service(source_responses: dict[str, str]) -> ScriptedService:
    """Scripted source manager holding one entity of every kind."""
    return ScriptedService(source_responses)


@pytest.fixture
def fake_manager() -> FakeManager:
    """Empty destination manager."""
    return FakeManager()
